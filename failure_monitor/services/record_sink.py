import logging
from typing import Any, Protocol

from failure_monitor.ring_log import RingLog
from failure_monitor.schemas.payment import FailedPayment
from failure_monitor.services.dispatcher import SinkOutcome

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "Failed Payments"
INITIAL_STATUS = "New"


class RecordStore(Protocol):
    async def create_record(self, table: str, fields: dict[str, Any]) -> str: ...


def build_fields(payment: FailedPayment) -> dict[str, Any]:
    return {
        "Payment ID": payment.payment_id,
        "Customer Email": payment.customer_email,
        "Amount": payment.amount_major_units,
        "Currency": payment.currency,
        "Failure Code": payment.failure_code,
        "Failure Message": payment.failure_message,
        "Failed At": payment.failed_at,
        "Status": INITIAL_STATUS,
    }


class AirtableRecordSink:
    """Creates one row per failed payment. No dedup against existing rows."""

    name = "record"

    def __init__(self, store: RecordStore, ring_log: RingLog, table: str = DEFAULT_TABLE):
        self._store = store
        self._ring_log = ring_log
        self.table = table

    async def deliver(self, payment: FailedPayment) -> SinkOutcome:
        try:
            record_id = await self._store.create_record(self.table, build_fields(payment))
        except Exception as exc:
            self._ring_log.record(f"Airtable error: {exc}")
            logger.warning(
                "Record creation failed",
                extra={"payment_id": payment.payment_id, "error": str(exc)},
            )
            return SinkOutcome(sink=self.name, success=False, detail=str(exc))

        self._ring_log.record(f"Added to Airtable: {record_id}")
        return SinkOutcome(sink=self.name, success=True, detail=record_id)
