import logging
from contextlib import asynccontextmanager

import httpx
import stripe
import uvicorn
from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import make_asgi_app

from failure_monitor.clients.airtable import AirtableClient
from failure_monitor.clients.gmail import GmailTransport
from failure_monitor.config import settings
from failure_monitor.middleware.metrics import MetricsMiddleware
from failure_monitor.middleware.request_id import RequestIDMiddleware
from failure_monitor.ring_log import RingLog
from failure_monitor.routers import diagnostics, webhooks
from failure_monitor.services.alert_sink import GmailAlertSink
from failure_monitor.services.record_sink import AirtableRecordSink
from failure_monitor.tracing import setup_tracing
from failure_monitor.utils.logging import SERVICE_NAME, setup_logging

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

setup_tracing(SERVICE_NAME, settings.otlp_endpoint)


@asynccontextmanager
async def lifespan(app: FastAPI):
    stripe.api_key = settings.stripe_secret_key or None

    ring_log = RingLog()
    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    gmail = GmailTransport(
        http_client,
        client_id=settings.gmail_client_id,
        client_secret=settings.gmail_client_secret,
        refresh_token=settings.gmail_refresh_token,
    )
    airtable = AirtableClient(
        http_client,
        api_key=settings.airtable_api_key,
        base_id=settings.airtable_base_id,
    )

    app.state.ring_log = ring_log
    app.state.alert_sink = GmailAlertSink(gmail, ring_log, recipient=settings.alert_email)
    app.state.record_sink = AirtableRecordSink(
        airtable, ring_log, table=settings.airtable_table_name
    )

    if not settings.stripe_webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set; every webhook will be rejected")

    ring_log.record(f"Server started on port {settings.port}")

    yield

    await http_client.aclose()
    logger.info("Shutting down")


app = FastAPI(
    title="Stripe Payment Monitor",
    description="Alerts and records failed Stripe payments",
    version="1.0.0",
    lifespan=lifespan,
)

FastAPIInstrumentor.instrument_app(app)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.include_router(diagnostics.router, tags=["diagnostics"])
app.include_router(webhooks.router, prefix="/webhook", tags=["webhooks"])

# Expose Prometheus metrics at /metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
