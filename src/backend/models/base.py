"""
Base capability for persisted documents.

Anything stored in the key-value store has a content-addressed id, a key
prefix naming its collection, and an optional list item appended to the
``{prefix}s`` membership set.
"""

from typing import Any, ClassVar, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Entity(Protocol):
    """Protocol every persisted document satisfies."""

    key_prefix: ClassVar[str]

    def entity_id(self) -> str: ...
    def list_item(self) -> Optional[str]: ...
    def expires_in(self) -> Optional[int]: ...
    def to_json(self) -> str: ...


class StoredDocument(BaseModel):
    """
    Pydantic base for documents kept in the key-value store.

    Subclasses set ``key_prefix`` and implement ``entity_id``. ``list_item``
    returns None for documents that are not enumerated (codes, tokens,
    setting snapshots). ``expires_in`` returns None for durable records.
    """

    key_prefix: ClassVar[str] = ""

    def entity_id(self) -> str:
        raise NotImplementedError

    def list_item(self) -> Optional[str]:
        return self.entity_id()

    def expires_in(self) -> Optional[int]:
        return None

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str | bytes) -> Any:
        return cls.model_validate_json(raw)


DocumentT = TypeVar("DocumentT", bound=StoredDocument)
