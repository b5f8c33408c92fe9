import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse

from failure_monitor.config import Settings, get_settings
from failure_monitor.dependencies import get_alert_sink, get_record_sink, get_ring_log, request_id
from failure_monitor.metrics import WEBHOOK_EVENTS
from failure_monitor.ring_log import RingLog
from failure_monitor.services.dispatcher import Sink, dispatch
from failure_monitor.services.normalizer import normalize_payment_failed
from failure_monitor.services.signature import WebhookError, construct_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
    ring_log: RingLog = Depends(get_ring_log),
    alert_sink: Sink = Depends(get_alert_sink),
    record_sink: Sink = Depends(get_record_sink),
):
    payload = await request.body()

    try:
        event = construct_event(payload, stripe_signature, settings.stripe_webhook_secret)
    except WebhookError as exc:
        ring_log.record(f"Webhook rejected: {exc}")
        logger.warning(
            "Rejected webhook delivery",
            extra={"request_id": request_id(request), "error": str(exc)},
        )
        WEBHOOK_EVENTS.labels("rejected").inc()
        return PlainTextResponse(f"Webhook Error: {exc}", status_code=400)

    if not event.is_payment_failed:
        ring_log.record(f"Ignored event {event.type}")
        WEBHOOK_EVENTS.labels("ignored").inc()
        return {"received": True}

    payment = normalize_payment_failed(event)
    logger.info(
        "Processing failed payment",
        extra={
            "request_id": request_id(request),
            "event_id": event.id,
            "payment_id": payment.payment_id,
        },
    )

    # Stripe only retries on non-2xx, so sink trouble must never change the status code.
    try:
        await dispatch(payment, alert_sink, record_sink, ring_log)
    except Exception as exc:
        ring_log.record(f"Dispatch error for {payment.payment_id}: {exc}")
        logger.exception(
            "Unexpected error while dispatching failed payment",
            extra={"request_id": request_id(request), "payment_id": payment.payment_id},
        )

    WEBHOOK_EVENTS.labels("processed").inc()
    return {"received": True}
