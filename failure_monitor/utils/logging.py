import logging
import sys

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "payment-failure-monitor"


def setup_logging(log_level: str = "INFO", service_name: str = SERVICE_NAME) -> None:
    """Route every logger through one JSON handler on stdout."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if root_logger.handlers:
        root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
        static_fields={"service": service_name},
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Keep request/transport chatter out of the JSON stream
    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
