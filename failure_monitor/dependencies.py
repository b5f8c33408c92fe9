"""FastAPI dependencies resolving the per-process objects built in the lifespan."""

from fastapi import Request

from failure_monitor.ring_log import RingLog
from failure_monitor.services.dispatcher import Sink


def get_ring_log(request: Request) -> RingLog:
    return request.app.state.ring_log


def get_alert_sink(request: Request) -> Sink:
    return request.app.state.alert_sink


def get_record_sink(request: Request) -> Sink:
    return request.app.state.record_sink


def request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")
