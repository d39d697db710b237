"""
Topic vote coordination.

Applies plan, voter and vote changes to a topic's setting and calls the
tally engine only when the voting state actually changed.

Every mutation is a read-modify-write of the whole topic record with no
version check: two concurrent mutations of the same topic race and the
later write wins, silently discarding the earlier one (lost update).
"""

import asyncio
import json
import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from core.exceptions import ValidationError
from models.plan import Plan, PlanBase
from models.topic import PollResult, Setting, SettingSnapshot, Topic, Vote
from repositories.keyed_store import KeyedStore
from services.tally_engine import TallyEngine

logger = structlog.get_logger(__name__)


class VoteStatus(str, Enum):
    """What insert_vote did."""

    UPDATED = "updated"  # Setting changed, result recomputed and stored
    NO_CHANGE = "no_change"  # Same setting hash and current result, nothing written
    NOT_A_VOTER = "not_a_voter"  # Vote dropped, user is not a registered voter


@dataclass(frozen=True)
class VoteOutcome:
    status: VoteStatus
    topic: Topic

    @property
    def changed(self) -> bool:
        return self.status is VoteStatus.UPDATED


def validate_vote(vote: Vote) -> Vote:
    """Weights must be finite and non-negative; plan ids non-empty."""
    for plan_id, weight in vote.items():
        if not plan_id:
            raise ValidationError("vote contains an empty plan id")
        if not math.isfinite(weight) or weight < 0:
            raise ValidationError(f"weight for plan {plan_id} must be a finite, non-negative number")
    return vote


class TopicVoteCoordinator:
    """Topic, plan and vote operations over the keyed store."""

    def __init__(self, store: KeyedStore, engine: TallyEngine):
        self.store = store
        self.engine = engine

    # ========================================================================
    # Topics
    # ========================================================================

    async def create_topic(self, title: str, description: str) -> Topic:
        """
        Create or replace a topic.

        The id is addressed by title and description, so putting the same
        pair again replaces the stored topic with a fresh one.
        """
        if not title.strip():
            raise ValidationError("title must not be empty")

        topic = Topic.create(title, description)
        await self.store.put(topic)
        logger.info("topic_put", topic_id=topic.id)
        return topic

    async def get_topic(self, topic_id: str) -> Topic:
        return await self.store.require(Topic, topic_id)

    async def delete_topic(self, topic_id: str) -> None:
        topic = await self.store.require(Topic, topic_id)
        await self.store.delete(topic)
        logger.info("topic_deleted", topic_id=topic_id)

    async def list_topics(self) -> list[tuple[str, str]]:
        """Return (id, title) pairs from the topics membership set."""
        topics = []
        for item in await self.store.list_items(Topic.key_prefix):
            try:
                topic_id, title = json.loads(item)
            except (ValueError, TypeError):
                logger.error("corrupt_list_item", set_name="topics", item=item)
                continue
            topics.append((topic_id, title))
        return topics

    # ========================================================================
    # Plans
    # ========================================================================

    async def put_plan(self, plan: Plan) -> str:
        return await self.store.put(plan)

    async def get_plan(self, plan_id: str) -> Plan:
        return await self.store.require(PlanBase, plan_id)

    async def list_plans(self) -> list[str]:
        return await self.store.list_items(PlanBase.key_prefix)

    async def _mutate_setting(self, topic_id: str, mutate: Callable[[Setting], None]) -> Topic:
        """
        Read the topic, apply a membership change and write it back.

        The setting hash is refreshed so it always describes the stored
        setting; the tally engine is not called.
        """
        topic = await self.store.require(Topic, topic_id)
        mutate(topic.setting)
        topic.refresh_setting_hash()
        await self.store.put(topic)
        return topic

    async def add_plan(self, topic_id: str, plan_id: str) -> Topic:
        return await self._mutate_setting(topic_id, lambda setting: setting.add_plan(plan_id))

    async def remove_plan(self, topic_id: str, plan_id: str) -> Topic:
        return await self._mutate_setting(topic_id, lambda setting: setting.remove_plan(plan_id))

    async def create_plan(self, topic_id: str, plan: Plan) -> tuple[Topic, str]:
        """Store a new plan and attach it to the topic with concurrent writes."""
        topic = await self.store.require(Topic, topic_id)
        plan_id = plan.entity_id()
        topic.setting.add_plan(plan_id)
        topic.refresh_setting_hash()

        await asyncio.gather(self.store.put(topic), self.store.put(plan))
        logger.info("plan_attached", topic_id=topic_id, plan_id=plan_id, kind=plan.kind)
        return topic, plan_id

    # ========================================================================
    # Voters
    # ========================================================================

    async def add_voter(self, topic_id: str, user_id: str) -> Topic:
        return await self._mutate_setting(topic_id, lambda setting: setting.add_voter(user_id))

    async def remove_voter(self, topic_id: str, user_id: str) -> Topic:
        return await self._mutate_setting(topic_id, lambda setting: setting.remove_voter(user_id))

    # ========================================================================
    # Votes
    # ========================================================================

    async def insert_vote(self, topic_id: str, user_id: str, vote: Vote) -> VoteOutcome:
        """
        Replace a voter's vote and recompute the result if the state changed.

        - a user who is not a registered voter is dropped silently
        - an unchanged setting hash with a current result writes nothing and
          skips the tally engine
        - otherwise the hash moves on, the engine runs, and the topic plus a
          ``setting:{hash}`` snapshot are stored
        """
        validate_vote(vote)
        topic = await self.store.require(Topic, topic_id)

        if not topic.setting.overwrite_vote(user_id, vote):
            logger.info("vote_ignored_not_a_voter", topic_id=topic_id, user_id=user_id)
            return VoteOutcome(VoteStatus.NOT_A_VOTER, topic)

        new_hash = topic.setting.based_hash()
        if new_hash == topic.setting_hash and topic.result_is_current:
            logger.info("vote_no_change", topic_id=topic_id, setting_hash=new_hash)
            return VoteOutcome(VoteStatus.NO_CHANGE, topic)

        topic.update_setting_hash(new_hash)
        topic.result = await self.calculate(topic.setting)
        topic.result_hash = new_hash

        snapshot = SettingSnapshot(hash=new_hash, setting=topic.setting, result=topic.result)
        topic_write, snapshot_write = await asyncio.gather(
            self.store.put(topic),
            self.store.put(snapshot),
            return_exceptions=True,
        )
        if isinstance(topic_write, BaseException):
            raise topic_write
        if isinstance(snapshot_write, BaseException):
            logger.error("setting_snapshot_write_failed", setting_hash=new_hash, error=str(snapshot_write))

        logger.info(
            "vote_applied",
            topic_id=topic_id,
            user_id=user_id,
            setting_hash=new_hash,
            setting_prev_hash=topic.setting_prev_hash,
        )
        return VoteOutcome(VoteStatus.UPDATED, topic)

    # ========================================================================
    # Settings
    # ========================================================================

    async def get_setting(self, setting_hash: str) -> SettingSnapshot:
        return await self.store.require(SettingSnapshot, setting_hash)

    async def calculate(self, setting: Setting) -> PollResult:
        """Run the tally engine off the event loop."""
        result = await asyncio.to_thread(self.engine.compute, setting)
        logger.info("tally_computed", plans=len(setting.plans), voters=len(setting.voters))
        return result
