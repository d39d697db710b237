"""
Topic documents and their voting state.

Key space:
- topic:{id}       Topic record, enumerated in ``topics`` as a JSON [id, title] pair
- setting:{hash}   SettingSnapshot, the voting state (and its result) for a hash
"""

import json
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, field_serializer

from core.security import sha256_hex
from models.base import StoredDocument

# Hash of a topic that has never been tallied
INITIAL_SETTING_HASH = "0"

Vote = dict[str, float]


class Setting(BaseModel):
    """
    The mutable voting state of a topic.

    - voters: user ids allowed to vote
    - plans: plan ids, in the order they were added
    - votes: user id -> plan id -> weight
    """

    voters: set[str] = Field(default_factory=set)
    plans: list[str] = Field(default_factory=list)
    votes: dict[str, Vote] = Field(default_factory=dict)

    @field_serializer("voters")
    def _serialize_voters(self, voters: set[str]) -> list[str]:
        return sorted(voters)

    def add_voter(self, user_id: str) -> None:
        self.voters.add(user_id)

    def remove_voter(self, user_id: str) -> None:
        """Remove a voter together with their vote."""
        self.voters.discard(user_id)
        self.votes.pop(user_id, None)

    def add_plan(self, plan_id: str) -> None:
        if plan_id not in self.plans:
            self.plans.append(plan_id)

    def remove_plan(self, plan_id: str) -> None:
        """Remove a plan and every weight given to it."""
        if plan_id in self.plans:
            self.plans.remove(plan_id)
        for vote in self.votes.values():
            vote.pop(plan_id, None)

    def overwrite_vote(self, user_id: str, vote: Vote) -> bool:
        """
        Replace a voter's whole vote.

        Returns False, leaving the state untouched, when the user is not a
        registered voter.
        """
        if user_id not in self.voters:
            return False
        self.votes[user_id] = dict(vote)
        return True

    def canonical(self) -> dict[str, Any]:
        return {
            "voters": sorted(self.voters),
            "plans": list(self.plans),
            "votes": {
                user_id: {plan_id: float(weight) for plan_id, weight in sorted(vote.items())}
                for user_id, vote in sorted(self.votes.items())
            },
        }

    def based_hash(self) -> str:
        """Content hash of the canonical serialization."""
        canonical = json.dumps(self.canonical(), sort_keys=True, separators=(",", ":"))
        return sha256_hex(canonical)


class PlanScore(BaseModel):
    plan_id: str
    score: float


class PollResult(BaseModel):
    """Output of the tally engine. Opaque to the coordinator."""

    model_config = {"extra": "allow"}

    ranking: list[PlanScore] = Field(default_factory=list)
    voter_count: int = 0
    ballot_count: int = 0


class Topic(StoredDocument):
    """
    A named poll.

    ``setting_hash`` is the hash of the current setting and
    ``setting_prev_hash`` the one before it. ``result_hash`` is the setting
    hash the cached ``result`` was computed for.
    """

    key_prefix: ClassVar[str] = "topic"

    id: str
    title: str
    description: str
    setting_hash: str = INITIAL_SETTING_HASH
    setting_prev_hash: str = INITIAL_SETTING_HASH
    setting: Setting = Field(default_factory=Setting)
    result: Optional[PollResult] = None
    result_hash: Optional[str] = None

    def entity_id(self) -> str:
        return self.id

    def list_item(self) -> Optional[str]:
        return json.dumps([self.id, self.title])

    @classmethod
    def create(cls, title: str, description: str) -> "Topic":
        """Build a fresh topic; the id is addressed by title and description."""
        setting = Setting()
        return cls(
            id=sha256_hex(f"{title}{description}"),
            title=title,
            description=description,
            setting=setting,
            setting_hash=setting.based_hash(),
        )

    @property
    def result_is_current(self) -> bool:
        return self.result is not None and self.result_hash == self.setting_hash

    def update_setting_hash(self, new_hash: str) -> bool:
        """Record a new setting hash, keeping the previous one. Returns True on change."""
        if new_hash == self.setting_hash:
            return False
        self.setting_prev_hash = self.setting_hash
        self.setting_hash = new_hash
        return True

    def refresh_setting_hash(self) -> bool:
        return self.update_setting_hash(self.setting.based_hash())


class SettingSnapshot(StoredDocument):
    """Voting state and result cached under its content hash."""

    key_prefix: ClassVar[str] = "setting"

    hash: str
    setting: Setting
    result: Optional[PollResult] = None

    def entity_id(self) -> str:
        return self.hash

    def list_item(self) -> Optional[str]:
        return None
