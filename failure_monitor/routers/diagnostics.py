import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from failure_monitor.dependencies import get_alert_sink, get_record_sink, get_ring_log, request_id
from failure_monitor.ring_log import RingLog
from failure_monitor.services.dispatcher import Sink, dispatch
from failure_monitor.services.normalizer import build_test_payment

router = APIRouter()
logger = logging.getLogger(__name__)

SERVICE_NAME = "Stripe Payment Monitor"
LOGS_PAGE_SIZE = 20


@router.get("/")
async def describe_service():
    return {
        "name": SERVICE_NAME,
        "status": "running",
        "endpoints": {
            "POST /webhook/stripe": "Stripe webhook",
            "GET /health": "Health check",
            "GET /logs": "Recent log entries",
            "POST /test": "Test run",
        },
    }


@router.get("/health")
async def health():
    return {"status": "healthy"}


@router.get("/logs")
async def recent_logs(ring_log: RingLog = Depends(get_ring_log)):
    return {"logs": [entry.to_dict() for entry in ring_log.recent(LOGS_PAGE_SIZE)]}


@router.post("/test")
async def trigger_test(
    request: Request,
    alert_sink: Sink = Depends(get_alert_sink),
    record_sink: Sink = Depends(get_record_sink),
    ring_log: RingLog = Depends(get_ring_log),
):
    try:
        payment = build_test_payment()
        logger.info(
            "Running synthetic failed payment",
            extra={"request_id": request_id(request), "payment_id": payment.payment_id},
        )
        await dispatch(payment, alert_sink, record_sink, ring_log)
    except Exception as exc:
        logger.exception("Synthetic test run failed", extra={"request_id": request_id(request)})
        return JSONResponse(status_code=500, content={"error": str(exc)})

    return {"success": True, "testData": payment.model_dump(by_alias=True)}
