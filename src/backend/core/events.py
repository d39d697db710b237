"""
Application lifecycle event handlers.

Manages startup and shutdown tasks for the key-value backend and the
email transport.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.exceptions import StoreError
from db.store_session import close_backend, get_backend
from services.email_service import email_service

logger = structlog.get_logger(__name__)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info("app_starting")

        # The backend is also built lazily, so a failure here is retried on first use
        try:
            await get_backend()
        except StoreError as e:
            logger.warning("store_backend_init_failed", error=str(e))

        await email_service.initialize()

        logger.info("app_started")

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("app_stopping", pending_emails=email_service.pending_count)

        # Let fire-and-forget mail finish before the loop goes away
        await email_service.drain()

        try:
            await close_backend()
        except StoreError as e:
            logger.warning("store_backend_close_failed", error=str(e))

        logger.info("app_stopped")

    return stop_app
