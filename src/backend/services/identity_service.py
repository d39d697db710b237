"""
Identity verification service.

A user moves Unregistered -> PendingVerification -> Verified:

1. sign_up stores an unverified user plus a one-time code (TTL) and emails
   a link carrying the user id and the code
2. verify_temp_code checks the code, marks the user verified and issues the
   bearer token
3. check_auth guards every request that acts for a user

Every lookup that backs an authorization decision fails closed: a store
error is treated exactly like a missing record.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

import structlog

from core.exceptions import NotFound, StoreError, Unauthorized, ValidationError
from core.logging import mask_email
from core.security import (
    extract_bearer_token,
    generate_access_token,
    generate_temp_code,
    generate_user_id,
)
from models.base import DocumentT
from models.user import DEFAULT_TEMP_CODE_TTL_SECONDS, AccessToken, TempCode, User
from repositories.keyed_store import KeyedStore
from services.email_service import MailSender, compose_temp_code_email

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SignUpResult:
    """Outcome of a sign-up; the code itself only travels by email."""

    user_id: str
    message: str


class IdentityService:
    """Sign-up, one-time code verification, token issuance and auth checks."""

    def __init__(
        self,
        store: KeyedStore,
        mail_sender: MailSender,
        temp_code_salt: str,
        access_token_salt: str,
        temp_code_ttl_seconds: int = DEFAULT_TEMP_CODE_TTL_SECONDS,
        verify_link_base_url: Optional[str] = None,
    ):
        if not temp_code_salt or not access_token_salt:
            raise ValueError("temp_code_salt and access_token_salt are required")
        self.store = store
        self.mail_sender = mail_sender
        self._temp_code_salt = temp_code_salt
        self._access_token_salt = access_token_salt
        self.temp_code_ttl_seconds = temp_code_ttl_seconds
        self.verify_link_base_url = verify_link_base_url

    async def _lookup(self, entity_type: type[DocumentT], entity_id: str) -> Optional[DocumentT]:
        """Read for an authorization decision; any store failure reads as absent."""
        try:
            return await self.store.get(entity_type, entity_id)
        except StoreError as e:
            logger.warning(
                "auth_lookup_failed",
                key_prefix=entity_type.key_prefix,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

    # ========================================================================
    # Sign-up
    # ========================================================================

    async def sign_up(self, nickname: str, email: str) -> SignUpResult:
        """
        Register (or re-register) an email address.

        Sign-up is an upsert: the user id is derived from the email, so a
        second sign-up renames the user, invalidates the previous code, and
        resets the user to unverified. Mail is handed off after the writes
        succeed and is never awaited.
        """
        nickname = nickname.strip()
        email = email.strip()
        if not nickname:
            raise ValidationError("nickname must not be empty")
        if "@" not in email:
            raise ValidationError("email must be an email address")

        user_id = generate_user_id(email)
        code = generate_temp_code(self._temp_code_salt, nickname, email)

        existing = await self.store.get(User, user_id)

        user = User.register(nickname, email)
        writes = [
            self.store.put(TempCode.issue(code, user_id, self.temp_code_ttl_seconds)),
            self.store.put(user),
        ]
        if existing is not None:
            previous_code = generate_temp_code(self._temp_code_salt, existing.nickname, email)
            if previous_code != code:
                writes.append(self.store.delete(TempCode(code=previous_code, user_id=user_id)))

        await asyncio.gather(*writes)

        self.mail_sender.dispatch(
            compose_temp_code_email(
                nickname=nickname,
                email=email,
                user_id=user_id,
                code=code,
                link_base_url=self.verify_link_base_url,
                ttl_seconds=self.temp_code_ttl_seconds,
            )
        )

        logger.info(
            "temp_code_issued",
            user_id=user_id,
            to_email=mask_email(email),
            re_registration=existing is not None,
        )
        return SignUpResult(user_id=user_id, message="check your email for the verification link")

    # ========================================================================
    # Verification
    # ========================================================================

    async def verify_temp_code(self, user_id: str, code: str) -> str:
        """
        Exchange a one-time code for the user's access token.

        Raises:
            Unauthorized: unless the code exists, has not expired, and maps
                to this user, and the user exists
        """
        temp_code, user = await asyncio.gather(
            self._lookup(TempCode, code),
            self._lookup(User, user_id),
        )

        if temp_code is None or user is None or temp_code.user_id != user_id:
            logger.warning("temp_code_rejected", user_id=user_id)
            raise Unauthorized("invalid or expired code")

        user.is_verified = True
        token = generate_access_token(self._access_token_salt, user_id)

        await asyncio.gather(
            self.store.put(AccessToken(token=token, user_id=user_id)),
            self.store.put(user),
            self.store.delete(temp_code),
        )

        logger.info("access_token_issued", user_id=user_id)
        return token

    # ========================================================================
    # Authorization
    # ========================================================================

    async def check_auth(self, user_id: str, headers: Mapping[str, str]) -> bool:
        """
        Check that the bearer token belongs to ``user_id``.

        True iff the user exists and the token resolves to exactly that user.
        A missing or malformed header is simply False.
        """
        token = extract_bearer_token(headers)
        if token is None:
            return False

        user, access_token = await asyncio.gather(
            self._lookup(User, user_id),
            self._lookup(AccessToken, token),
        )

        return user is not None and access_token is not None and access_token.user_id == user_id

    async def require_auth(self, user_id: str, headers: Mapping[str, str]) -> None:
        """Raise Unauthorized unless check_auth passes."""
        if not await self.check_auth(user_id, headers):
            raise Unauthorized("bearer token does not match user")

    # ========================================================================
    # User records
    # ========================================================================

    async def get_user(self, user_id: str, headers: Mapping[str, str]) -> User:
        """Read the caller's own user record."""
        await self.require_auth(user_id, headers)
        return await self.store.require(User, user_id)

    async def get_users(self, user_ids: list[str]) -> list[User]:
        """
        Read several users at once.

        Raises NotFound for the first id that has no record.
        """
        users = await asyncio.gather(*(self.store.get(User, user_id) for user_id in user_ids))
        for user_id, user in zip(user_ids, users):
            if user is None:
                raise NotFound(User.key_prefix, user_id)
        return list(users)

    async def delete_user(self, user_id: str, headers: Mapping[str, str]) -> None:
        """Delete the caller's own user record and its membership."""
        await self.require_auth(user_id, headers)

        user = await self.store.require(User, user_id)
        await self.store.delete(user)
        logger.info("user_deleted", user_id=user_id)
