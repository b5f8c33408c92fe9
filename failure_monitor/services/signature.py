"""
Stripe-Signature verification for inbound webhook deliveries.

The header is checked with Stripe's own verifier (HMAC-SHA256 over
"<timestamp>.<raw body>", constant-time comparison, replay tolerance) before
the body is parsed, so nothing from an unauthenticated body reaches the sinks.
"""

import logging

import stripe
from pydantic import ValidationError

from failure_monitor.schemas.events import StripeEvent

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = stripe.Webhook.DEFAULT_TOLERANCE


class WebhookError(Exception):
    """Raised when a delivery fails authentication or cannot be parsed."""


def construct_event(
    payload: bytes,
    sig_header: str | None,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
) -> StripeEvent:
    if not secret:
        raise WebhookError("Webhook signing secret is not configured")
    if not sig_header:
        raise WebhookError("No Stripe-Signature header value was provided")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise WebhookError("Payload is not valid UTF-8") from exc

    try:
        stripe.WebhookSignature.verify_header(body, sig_header, secret, tolerance)
    except stripe.SignatureVerificationError as exc:
        raise WebhookError(exc.user_message or str(exc)) from exc

    try:
        event = StripeEvent.model_validate_json(payload)
    except ValidationError as exc:
        raise WebhookError(f"Invalid event payload: {exc.errors()[0]['msg']}") from exc

    logger.info(
        "Webhook signature verified",
        extra={"event_id": event.id, "event_type": event.type},
    )
    return event
