"""
Identity documents: users, one-time codes and access tokens.

Key space:
- user:{id}            User record, enumerated in ``users``
- temp_code:{code}     TempCode, expires after the configured TTL
- access_token:{token} AccessToken, durable
"""

from typing import ClassVar, Optional

from pydantic import Field, PrivateAttr

from core.security import generate_user_id
from models.base import StoredDocument

DEFAULT_TEMP_CODE_TTL_SECONDS = 1800


class User(StoredDocument):
    """
    A registered user.

    The id is derived from the normalized email, which is not itself stored.
    """

    key_prefix: ClassVar[str] = "user"

    id: str
    nickname: str
    is_verified: bool = False

    def entity_id(self) -> str:
        return self.id

    @classmethod
    def register(cls, nickname: str, email: str) -> "User":
        """Build an unverified user for a sign-up."""
        return cls(id=generate_user_id(email), nickname=nickname, is_verified=False)


class TempCode(StoredDocument):
    """Ephemeral mapping from a one-time code to the user it was issued for."""

    key_prefix: ClassVar[str] = "temp_code"

    code: str
    user_id: str

    _ttl_seconds: int = PrivateAttr(default=DEFAULT_TEMP_CODE_TTL_SECONDS)

    def entity_id(self) -> str:
        return self.code

    def list_item(self) -> Optional[str]:
        return None

    def expires_in(self) -> Optional[int]:
        return self._ttl_seconds

    @classmethod
    def issue(cls, code: str, user_id: str, ttl_seconds: int = DEFAULT_TEMP_CODE_TTL_SECONDS) -> "TempCode":
        temp_code = cls(code=code, user_id=user_id)
        temp_code._ttl_seconds = ttl_seconds
        return temp_code


class AccessToken(StoredDocument):
    """Durable mapping from a bearer token to its user. No expiry, no rotation."""

    key_prefix: ClassVar[str] = "access_token"

    token: str = Field(..., min_length=1)
    user_id: str

    def entity_id(self) -> str:
        return self.token

    def list_item(self) -> Optional[str]:
        return None
