import logging
from typing import Protocol

from failure_monitor.ring_log import RingLog
from failure_monitor.schemas.payment import FailedPayment
from failure_monitor.services.dispatcher import SinkOutcome

logger = logging.getLogger(__name__)

DEFAULT_RECIPIENT = "admin@example.com"
ALERT_HEADER = "Payment failure alert"


class MessageTransport(Protocol):
    async def send(self, recipient: str, subject: str, body: str) -> str: ...


def render_subject(payment: FailedPayment) -> str:
    return f"Payment Failed: {payment.customer_email}"


def render_body(payment: FailedPayment) -> str:
    return "\n".join(
        [
            ALERT_HEADER,
            f"Payment ID: {payment.payment_id}",
            f"Amount: ${payment.formatted_amount}",
            f"Reason: {payment.failure_message}",
        ]
    )


class GmailAlertSink:
    """E-mails one alert per failed payment. A single attempt, never retried."""

    name = "alert"

    def __init__(self, transport: MessageTransport, ring_log: RingLog, recipient: str | None = None):
        self._transport = transport
        self._ring_log = ring_log
        self.recipient = recipient or DEFAULT_RECIPIENT

    async def deliver(self, payment: FailedPayment) -> SinkOutcome:
        try:
            message_id = await self._transport.send(
                self.recipient,
                render_subject(payment),
                render_body(payment),
            )
        except Exception as exc:
            self._ring_log.record(f"Gmail error: {exc}")
            logger.warning(
                "Alert delivery failed",
                extra={"payment_id": payment.payment_id, "error": str(exc)},
            )
            return SinkOutcome(sink=self.name, success=False, detail=str(exc))

        if message_id:
            self._ring_log.record(f"Alert sent for {payment.payment_id} (message {message_id})")
        else:
            self._ring_log.record(f"Alert sent for {payment.payment_id}")
        return SinkOutcome(sink=self.name, success=True, detail=message_id or None)
