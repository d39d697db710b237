"""
Topic, plan and vote Pydantic schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field, RootModel

from models.plan import Plan
from models.topic import PollResult, Setting, Topic
from services.topic_coordinator import VoteOutcome, VoteStatus


class TopicCreate(BaseModel):
    """Schema for creating (or replacing) a topic."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field("", max_length=5000)


class TopicSummary(BaseModel):
    """Entry of the topic listing."""

    id: str
    title: str


class TopicResponse(BaseModel):
    """Full topic with its voting state and cached result."""

    id: str
    title: str
    description: str
    setting_hash: str
    setting_prev_hash: str
    setting: Setting
    result: Optional[PollResult] = None
    result_is_current: bool = False

    @classmethod
    def from_topic(cls, topic: Topic) -> "TopicResponse":
        return cls(
            id=topic.id,
            title=topic.title,
            description=topic.description,
            setting_hash=topic.setting_hash,
            setting_prev_hash=topic.setting_prev_hash,
            setting=topic.setting,
            result=topic.result,
            result_is_current=topic.result_is_current,
        )


class PlanPayload(RootModel[Plan]):
    """A plan body, told apart by its ``kind``."""


class PlanCreated(BaseModel):
    id: str


class TopicPlanCreated(BaseModel):
    plan_id: str
    topic: TopicResponse


class VoteResponse(BaseModel):
    """Outcome of a vote submission."""

    status: VoteStatus
    changed: bool
    setting_hash: str
    result: Optional[PollResult] = None

    @classmethod
    def from_outcome(cls, outcome: VoteOutcome) -> "VoteResponse":
        return cls(
            status=outcome.status,
            changed=outcome.changed,
            setting_hash=outcome.topic.setting_hash,
            result=outcome.topic.result,
        )
