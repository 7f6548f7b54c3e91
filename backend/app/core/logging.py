"""Application-wide logging configuration.

Modules log through ``logging.getLogger(__name__)``; the app entry point
and error handlers use ``structlog.get_logger()``. Both end up on the same
stdlib handlers so a single LOG_LEVEL controls everything.
"""

import logging

import structlog

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and route structlog through it.

    Call once at app creation. Unknown level names fall back to INFO.

    Args:
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL".
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "event"]
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.getLogger(__name__).debug("Logging initialized with level %s", level)
