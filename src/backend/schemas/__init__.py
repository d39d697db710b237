"""Schemas module initialization."""

from schemas.topic import (
    PlanPayload,
    PlanCreated,
    TopicCreate,
    TopicPlanCreated,
    TopicResponse,
    TopicSummary,
    VoteResponse,
)
from schemas.user import (
    AuthCheckResponse,
    SignUpRequest,
    SignUpResponse,
    TokenResponse,
    UserIdsRequest,
    UserResponse,
)

__all__ = [
    "SignUpRequest",
    "SignUpResponse",
    "TokenResponse",
    "AuthCheckResponse",
    "UserResponse",
    "UserIdsRequest",
    "TopicCreate",
    "TopicSummary",
    "TopicResponse",
    "PlanPayload",
    "PlanCreated",
    "TopicPlanCreated",
    "VoteResponse",
]
