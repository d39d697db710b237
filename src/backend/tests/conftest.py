"""
Pytest fixtures for Ornot backend tests.
"""

import os
import re
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app
os.environ.setdefault("TEMP_CODE_SALT", "test-temp-code-salt")
os.environ.setdefault("ACCESS_TOKEN_SALT", "test-access-token-salt")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")

from db.memory_backend import InMemoryBackend  # noqa: E402
from models.topic import PollResult, Setting  # noqa: E402
from repositories.keyed_store import KeyedStore  # noqa: E402
from services.email_service import Email  # noqa: E402
from services.identity_service import IdentityService  # noqa: E402
from services.tally_engine import WeightedTallyEngine  # noqa: E402
from services.topic_coordinator import TopicVoteCoordinator  # noqa: E402

TEMP_CODE_SALT = "test-temp-code-salt"
ACCESS_TOKEN_SALT = "test-access-token-salt"

_LINK_PATTERN = re.compile(r"/([0-9a-f]{64})/([0-9a-f]{64})")


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingMailSender:
    """MailSender that keeps every dispatched email instead of sending it."""

    def __init__(self):
        self.sent: list[Email] = []

    def dispatch(self, email: Email) -> None:
        self.sent.append(email)

    def last_link(self) -> tuple[str, str]:
        """(user_id, code) from the most recent verification link."""
        match = _LINK_PATTERN.search(self.sent[-1].body)
        assert match is not None, "no verification link in email body"
        return match.group(1), match.group(2)


class CountingEngine(WeightedTallyEngine):
    """Weighted engine that records how often it ran."""

    def __init__(self):
        self.calls = 0

    def compute(self, setting: Setting) -> PollResult:
        self.calls += 1
        return super().compute(setting)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock: FakeClock) -> InMemoryBackend:
    return InMemoryBackend(clock=clock)


@pytest.fixture
def store(backend: InMemoryBackend) -> KeyedStore:
    return KeyedStore(backend, timeout_seconds=1.0)


@pytest.fixture
def mail_sender() -> RecordingMailSender:
    return RecordingMailSender()


@pytest.fixture
def engine() -> CountingEngine:
    return CountingEngine()


@pytest.fixture
def access_token_salt() -> str:
    return ACCESS_TOKEN_SALT


@pytest.fixture
def make_identity_service(mail_sender: RecordingMailSender) -> Callable[[KeyedStore], IdentityService]:
    """Build an identity service with the test salts over any store."""

    def _make(store: KeyedStore) -> IdentityService:
        return IdentityService(
            store=store,
            mail_sender=mail_sender,
            temp_code_salt=TEMP_CODE_SALT,
            access_token_salt=ACCESS_TOKEN_SALT,
            verify_link_base_url="https://ornot.test/auth",
        )

    return _make


@pytest.fixture
def identity_service(store: KeyedStore, make_identity_service) -> IdentityService:
    return make_identity_service(store)


@pytest.fixture
def coordinator(store: KeyedStore, engine: CountingEngine) -> TopicVoteCoordinator:
    return TopicVoteCoordinator(store=store, engine=engine)


@pytest.fixture
def register_user(
    identity_service: IdentityService,
    mail_sender: RecordingMailSender,
) -> Callable[[str, str], Awaitable[tuple[str, str]]]:
    """Sign up and verify a user; returns (user_id, access_token)."""

    async def _register(nickname: str, email: str) -> tuple[str, str]:
        await identity_service.sign_up(nickname, email)
        user_id, code = mail_sender.last_link()
        token = await identity_service.verify_temp_code(user_id, code)
        return user_id, token

    return _register


@pytest.fixture
async def app(store: KeyedStore, mail_sender: RecordingMailSender, engine: CountingEngine) -> AsyncGenerator[Any, None]:
    """FastAPI application wired to the in-memory store and recording collaborators."""
    from api.deps import get_tally_engine
    from main import app as fastapi_app
    from repositories.provider import get_keyed_store
    from services.email_service import get_email_service

    fastapi_app.dependency_overrides[get_keyed_store] = lambda: store
    fastapi_app.dependency_overrides[get_email_service] = lambda: mail_sender
    fastapi_app.dependency_overrides[get_tally_engine] = lambda: engine
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
