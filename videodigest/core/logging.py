import logging
import sys
import structlog
from videodigest.core.config import get_settings


def setup_logging():
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=settings.log_level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    # Every line carries the service name and environment
    structlog.contextvars.bind_contextvars(
        service=settings.service_name,
        env=settings.app_env,
    )


def get_logger(**initial_values):
    return structlog.get_logger(**initial_values)
