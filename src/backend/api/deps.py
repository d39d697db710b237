"""
Shared dependencies for API endpoints.

Includes:
- Service construction over the process-wide store
- Bearer-token guard for routes that act for a path user
"""

from typing import Annotated

from fastapi import Depends, Request

from core.config import settings
from repositories.keyed_store import KeyedStore
from repositories.provider import get_keyed_store
from services.email_service import EmailService, get_email_service
from services.identity_service import IdentityService
from services.tally_engine import TallyEngine, WeightedTallyEngine
from services.topic_coordinator import TopicVoteCoordinator

_tally_engine = WeightedTallyEngine()


def get_tally_engine() -> TallyEngine:
    return _tally_engine


async def get_identity_service(
    store: Annotated[KeyedStore, Depends(get_keyed_store)],
    mail: Annotated[EmailService, Depends(get_email_service)],
) -> IdentityService:
    """Build the identity service with the configured salts."""
    return IdentityService(
        store=store,
        mail_sender=mail,
        temp_code_salt=settings.TEMP_CODE_SALT,
        access_token_salt=settings.ACCESS_TOKEN_SALT,
        temp_code_ttl_seconds=settings.TEMP_CODE_TTL_SECONDS,
        verify_link_base_url=settings.VERIFY_LINK_BASE_URL,
    )


async def get_topic_coordinator(
    store: Annotated[KeyedStore, Depends(get_keyed_store)],
    engine: Annotated[TallyEngine, Depends(get_tally_engine)],
) -> TopicVoteCoordinator:
    return TopicVoteCoordinator(store=store, engine=engine)


async def require_path_user(
    user_id: str,
    request: Request,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
) -> str:
    """
    Guard a route that acts for ``{user_id}``.

    The bearer token must resolve to exactly that user; otherwise 401.
    """
    await identity.require_auth(user_id, request.headers)
    return user_id


IdentityDep = Annotated[IdentityService, Depends(get_identity_service)]
CoordinatorDep = Annotated[TopicVoteCoordinator, Depends(get_topic_coordinator)]
AuthorizedUser = Annotated[str, Depends(require_path_user)]
