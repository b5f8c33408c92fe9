"""
Fan one FailedPayment out to the alert and record sinks.

Both sinks run concurrently and the dispatcher returns only after both have
finished. Sinks report failure through their SinkOutcome rather than by
raising, so one sink failing never stops the other.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from opentelemetry import trace

from failure_monitor.metrics import SINK_DELIVERIES
from failure_monitor.ring_log import RingLog
from failure_monitor.schemas.payment import FailedPayment

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass
class SinkOutcome:
    sink: str
    success: bool
    detail: str | None = None


class Sink(Protocol):
    name: str

    async def deliver(self, payment: FailedPayment) -> SinkOutcome: ...


async def _run_sink(sink: Sink, payment: FailedPayment, ring_log: RingLog | None) -> SinkOutcome:
    with tracer.start_as_current_span(f"sink.{sink.name}.deliver") as span:
        span.set_attribute("payment.id", payment.payment_id)
        try:
            outcome = await sink.deliver(payment)
        except Exception as exc:
            # Sinks are expected to report their own failures; this only catches ones that escape.
            logger.exception(
                "Sink raised instead of returning an outcome",
                extra={"sink": sink.name, "payment_id": payment.payment_id},
            )
            if ring_log is not None:
                ring_log.record(f"{sink.name} sink error: {exc}")
            outcome = SinkOutcome(sink=sink.name, success=False, detail=str(exc))
        span.set_attribute("sink.success", outcome.success)

    SINK_DELIVERIES.labels(sink.name, "success" if outcome.success else "failed").inc()
    return outcome


async def dispatch(
    payment: FailedPayment,
    alert_sink: Sink,
    record_sink: Sink,
    ring_log: RingLog | None = None,
) -> list[SinkOutcome]:
    outcomes = await asyncio.gather(
        _run_sink(alert_sink, payment, ring_log),
        _run_sink(record_sink, payment, ring_log),
    )
    logger.info(
        "Failed payment dispatched",
        extra={
            "payment_id": payment.payment_id,
            "outcomes": {o.sink: o.success for o in outcomes},
        },
    )
    return list(outcomes)
