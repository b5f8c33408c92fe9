from failure_monitor.schemas.events import PAYMENT_FAILED_EVENT, EventData, StripeEvent
from failure_monitor.schemas.payment import FailedPayment

__all__ = [
    "PAYMENT_FAILED_EVENT",
    "EventData",
    "FailedPayment",
    "StripeEvent",
]
