"""
Email Service using Azure Communication Services.

Handles:
- Composing the one-time code verification email
- Fire-and-forget dispatch: the request path never waits on the mail relay,
  and a failed send never unwinds store writes
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

import structlog
from azure.communication.email import EmailClient

from core.config import settings
from core.logging import mask_email

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Email:
    """A composed message ready to hand off to a transport."""

    to_name: str
    to_address: str
    subject: str
    body: str


class MailSender(Protocol):
    """Anything that accepts an email for asynchronous delivery."""

    def dispatch(self, email: Email) -> None: ...


def compose_temp_code_email(
    nickname: str,
    email: str,
    user_id: str,
    code: str,
    link_base_url: Optional[str] = None,
    ttl_seconds: Optional[int] = None,
) -> Email:
    """
    Compose the verification email carrying the one-time code link.

    Args:
        nickname: Recipient's nickname
        email: Recipient address
        user_id: The user's id, embedded in the link
        code: The one-time code, embedded in the link
        link_base_url: Base of the verification link (defaults to settings)
        ttl_seconds: Lifetime of the code (defaults to settings)

    Returns:
        The composed Email
    """
    base_url = (link_base_url or settings.VERIFY_LINK_BASE_URL).rstrip("/")
    verify_url = f"{base_url}/{user_id}/{code}"
    if ttl_seconds is None:
        ttl_seconds = settings.TEMP_CODE_TTL_SECONDS

    body = f"""
Hi {nickname}, this is a tiny note to let you know your temp code.

Use the link below to verify that you own this email address:
{verify_url}

The link expires in {ttl_seconds // 60} minutes.

Bye and have a nice day :)
    """.strip()

    return Email(
        to_name=nickname,
        to_address=email,
        subject="your temp code",
        body=body,
    )


class EmailService:
    """
    Email service using Azure Communication Services.

    Features:
    - Background dispatch with tracked tasks
    - Logged (never raised) delivery failures
    - Each send and the shutdown drain() are bounded by a timeout
    """

    def __init__(self, send_timeout_seconds: Optional[float] = None):
        self._client = None
        self._initialized = False
        self._sender_address: Optional[str] = None
        self._pending: set[asyncio.Task] = set()
        self._send_timeout = (
            send_timeout_seconds if send_timeout_seconds is not None else settings.EMAIL_SEND_TIMEOUT_SECONDS
        )

    async def initialize(self) -> None:
        """Initialize the Azure Email client."""
        if self._initialized:
            return

        connection_string = settings.AZURE_COMMUNICATION_CONNECTION_STRING
        self._sender_address = settings.AZURE_EMAIL_SENDER_ADDRESS

        if not connection_string or not self._sender_address:
            logger.warning(
                "email_service_not_configured",
                has_connection_string=bool(connection_string),
                has_sender_address=bool(self._sender_address),
            )
            self._initialized = True
            return

        try:
            self._client = EmailClient.from_connection_string(connection_string)
            logger.info("email_service_initialized")
        except ValueError as e:
            logger.error("email_service_init_failed", error=str(e))
        self._initialized = True

    @property
    def is_available(self) -> bool:
        """Check if email service is available."""
        return self._client is not None and self._sender_address is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def dispatch(self, email: Email) -> None:
        """
        Hand an email off for background delivery.

        Returns immediately; the outcome is only logged.
        """
        task = asyncio.get_running_loop().create_task(self.send_email(email))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self, timeout_seconds: Optional[float] = None) -> None:
        """Wait for outstanding sends to finish, cancelling any still running at the timeout."""
        if not self._pending:
            return
        timeout = timeout_seconds if timeout_seconds is not None else self._send_timeout
        outstanding = len(self._pending)
        try:
            await asyncio.wait_for(asyncio.gather(*self._pending, return_exceptions=True), timeout)
        except asyncio.TimeoutError:
            logger.warning("email_drain_timeout", pending=outstanding, timeout_seconds=timeout)

    async def send_email(self, email: Email) -> bool:
        """
        Send an email.

        Returns:
            True if sent successfully
        """
        await self.initialize()

        if not self.is_available:
            logger.warning(
                "email_service_unavailable",
                subject=email.subject,
                to_email=mask_email(email.to_address),
            )
            return False

        return await self._send_email(email)

    async def _send_email(self, email: Email) -> bool:
        """
        Internal method to send an email.

        The Azure client is synchronous, so the poller runs in a worker thread
        and is abandoned once the send timeout expires.
        """
        if not self._client or not self._sender_address:
            return False

        message = {
            "senderAddress": self._sender_address,
            "recipients": {
                "to": [{"address": email.to_address, "displayName": email.to_name}],
            },
            "content": {
                "subject": email.subject,
                "plainText": email.body,
            },
        }

        try:
            result = await asyncio.wait_for(self._begin_and_wait(message), self._send_timeout)
        except asyncio.TimeoutError:
            logger.error(
                "email_send_timeout",
                to=mask_email(email.to_address),
                timeout_seconds=self._send_timeout,
            )
            return False
        except Exception as e:
            # Relay or auth failures must not reach the request path
            logger.error("email_send_error", error=str(e), to=mask_email(email.to_address))
            return False

        if result["status"] == "Succeeded":
            logger.info(
                "email_sent",
                to=mask_email(email.to_address),
                subject=email.subject,
                message_id=result.get("id"),
            )
            return True

        logger.error(
            "email_send_failed",
            status=result["status"],
            error=result.get("error"),
        )
        return False

    async def _begin_and_wait(self, message: dict) -> dict:
        poller = await asyncio.to_thread(self._client.begin_send, message)
        return await asyncio.to_thread(poller.result)


# Global instance
email_service = EmailService()


async def get_email_service() -> EmailService:
    """Dependency for getting email service."""
    await email_service.initialize()
    return email_service
