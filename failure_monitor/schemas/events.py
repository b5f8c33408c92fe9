"""
Stripe webhook envelope as delivered to POST /webhook/stripe.

Only the envelope is typed strictly; the nested `data.object` stays a plain
dict so the normalizer can degrade missing or malformed fields to defaults
instead of rejecting the whole delivery.
"""

from typing import Any

from pydantic import BaseModel, Field

PAYMENT_FAILED_EVENT = "payment_intent.payment_failed"


class EventData(BaseModel):
    object: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class StripeEvent(BaseModel):
    id: str | None = None
    type: str
    created: Any = None  # epoch seconds; coerced by the normalizer
    livemode: bool = False
    data: EventData

    model_config = {"extra": "ignore"}

    @property
    def is_payment_failed(self) -> bool:
        return self.type == PAYMENT_FAILED_EVENT
