from decimal import Decimal

from pydantic import BaseModel, Field


class FailedPayment(BaseModel):
    """Canonical failed-payment record handed to every sink."""

    payment_id: str = Field(min_length=1)
    customer_email: str
    amount_minor_units: int = Field(ge=0, serialization_alias="amount")
    currency: str
    failure_code: str
    failure_message: str
    failed_at: str

    model_config = {"frozen": True}

    @property
    def amount_major_units(self) -> int | float:
        major = Decimal(self.amount_minor_units) / 100
        # 5000 -> 50, 1999 -> 19.99
        return int(major) if major == major.to_integral_value() else float(major)

    @property
    def formatted_amount(self) -> str:
        return f"{Decimal(self.amount_minor_units) / 100:.2f}"
