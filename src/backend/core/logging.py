"""
structlog setup.

Modules only ever call ``structlog.get_logger(__name__)``; this wires the
processors once at startup.
"""

import logging

import structlog


def configure_logging(app_env: str, debug: bool = False) -> None:
    """Configure structlog rendering for the given environment."""
    level = logging.DEBUG if debug else logging.INFO

    renderer: structlog.types.Processor
    if app_env in ("development", "test"):
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def mask_email(email: str) -> str:
    """Mask an email address for logs."""
    return email[:3] + "***"
