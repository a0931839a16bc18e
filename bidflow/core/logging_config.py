# bidflow/core/logging_config.py
import logging
import sys

import structlog

from bidflow.core.settings import get_settings


def setup_logging() -> None:
    """
    Configure structlog + standard logging.
    JSON to stdout by default, readable console output when log_json is off.
    """
    s = get_settings()
    level = getattr(logging, s.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if s.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Global logger, import it wherever you need it
logger = structlog.get_logger("bidflow")
