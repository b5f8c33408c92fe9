"""
Stripe payment intent -> FailedPayment.

The normalizer is total: every field the upstream payload omits, or supplies
in an unusable shape, falls back to one of the defaults below.
"""

from datetime import datetime, timezone
from typing import Any

from failure_monitor.ring_log import utc_isoformat
from failure_monitor.schemas.events import StripeEvent
from failure_monitor.schemas.payment import FailedPayment

UNKNOWN_PAYMENT_ID = "unknown"
UNKNOWN_EMAIL = "Unknown"
UNKNOWN_CURRENCY = "unknown"
UNKNOWN_FAILURE_CODE = "unknown"
DEFAULT_FAILURE_MESSAGE = "Payment failed"

TEST_EMAIL = "test@example.com"
TEST_AMOUNT = 5000
TEST_CURRENCY = "usd"
TEST_FAILURE_CODE = "card_declined"
TEST_FAILURE_MESSAGE = "Test failure"


def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def _amount(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        amount = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(amount, 0)


def _timestamp(created: Any) -> str:
    try:
        moment = datetime.fromtimestamp(int(created), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return utc_isoformat()
    return utc_isoformat(moment)


def normalize_payment_failed(event: StripeEvent) -> FailedPayment:
    intent = event.data.object
    error = intent.get("last_payment_error")
    if not isinstance(error, dict):
        error = {}

    return FailedPayment(
        payment_id=_text(intent.get("id"), UNKNOWN_PAYMENT_ID),
        customer_email=_text(intent.get("receipt_email"), UNKNOWN_EMAIL),
        amount_minor_units=_amount(intent.get("amount")),
        currency=_text(intent.get("currency"), UNKNOWN_CURRENCY).lower(),
        failure_code=_text(error.get("code"), UNKNOWN_FAILURE_CODE),
        failure_message=_text(error.get("message"), DEFAULT_FAILURE_MESSAGE),
        failed_at=_timestamp(event.created),
    )


def build_test_payment(now: datetime | None = None) -> FailedPayment:
    """Synthetic record used by POST /test."""
    now = now or datetime.now(timezone.utc)
    epoch_ms = int(now.timestamp() * 1000)
    return FailedPayment(
        payment_id=f"test_{epoch_ms}",
        customer_email=TEST_EMAIL,
        amount_minor_units=TEST_AMOUNT,
        currency=TEST_CURRENCY,
        failure_code=TEST_FAILURE_CODE,
        failure_message=TEST_FAILURE_MESSAGE,
        failed_at=utc_isoformat(now),
    )
