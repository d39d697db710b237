"""
Topic, plan membership, voter membership and vote endpoints.
"""

from fastapi import APIRouter, Body, status

from api.deps import AuthorizedUser, CoordinatorDep
from models.topic import Vote
from schemas.topic import (
    PlanPayload,
    TopicCreate,
    TopicPlanCreated,
    TopicResponse,
    TopicSummary,
    VoteResponse,
)

router = APIRouter()


# =============================================================================
# Topics
# =============================================================================


@router.put("/topic", response_model=TopicResponse)
async def put_topic(topic_data: TopicCreate, coordinator: CoordinatorDep) -> TopicResponse:
    """
    Create a topic.

    The id is addressed by title and description; putting the same pair
    again replaces the stored topic with an empty one.
    """
    topic = await coordinator.create_topic(topic_data.title, topic_data.description)
    return TopicResponse.from_topic(topic)


@router.get("/topics", response_model=list[TopicSummary])
async def list_topics(coordinator: CoordinatorDep) -> list[TopicSummary]:
    topics = await coordinator.list_topics()
    return [TopicSummary(id=topic_id, title=title) for topic_id, title in topics]


@router.get("/topic/{topic_id}", response_model=TopicResponse)
async def get_topic(topic_id: str, coordinator: CoordinatorDep) -> TopicResponse:
    topic = await coordinator.get_topic(topic_id)
    return TopicResponse.from_topic(topic)


@router.delete("/topic/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(topic_id: str, coordinator: CoordinatorDep) -> None:
    await coordinator.delete_topic(topic_id)


# =============================================================================
# Plans
# =============================================================================


@router.post("/topic/{topic_id}/plan", response_model=TopicPlanCreated, status_code=status.HTTP_201_CREATED)
async def create_topic_plan(
    topic_id: str,
    payload: PlanPayload,
    coordinator: CoordinatorDep,
) -> TopicPlanCreated:
    """Store a new plan and attach it to the topic."""
    topic, plan_id = await coordinator.create_plan(topic_id, payload.root)
    return TopicPlanCreated(plan_id=plan_id, topic=TopicResponse.from_topic(topic))


@router.post("/topic/{topic_id}/plan/{plan_id}", response_model=TopicResponse)
async def add_plan(topic_id: str, plan_id: str, coordinator: CoordinatorDep) -> TopicResponse:
    topic = await coordinator.add_plan(topic_id, plan_id)
    return TopicResponse.from_topic(topic)


@router.delete("/topic/{topic_id}/plan/{plan_id}", response_model=TopicResponse)
async def remove_plan(topic_id: str, plan_id: str, coordinator: CoordinatorDep) -> TopicResponse:
    """Detach a plan; every weight given to it is dropped."""
    topic = await coordinator.remove_plan(topic_id, plan_id)
    return TopicResponse.from_topic(topic)


# =============================================================================
# Voters and votes
# =============================================================================


@router.post("/topic/{topic_id}/user/{user_id}", response_model=TopicResponse)
async def add_voter(topic_id: str, user_id: AuthorizedUser, coordinator: CoordinatorDep) -> TopicResponse:
    topic = await coordinator.add_voter(topic_id, user_id)
    return TopicResponse.from_topic(topic)


@router.delete("/topic/{topic_id}/user/{user_id}", response_model=TopicResponse)
async def remove_voter(topic_id: str, user_id: AuthorizedUser, coordinator: CoordinatorDep) -> TopicResponse:
    """Remove a voter together with their vote."""
    topic = await coordinator.remove_voter(topic_id, user_id)
    return TopicResponse.from_topic(topic)


@router.put("/topic/{topic_id}/vote/{user_id}", response_model=VoteResponse)
async def insert_vote(
    topic_id: str,
    user_id: AuthorizedUser,
    coordinator: CoordinatorDep,
    vote: Vote = Body(...),
) -> VoteResponse:
    """
    Replace the user's vote on a topic.

    Returns ``no_change`` when the voting state is identical to the last
    tallied one, and ``not_a_voter`` (with nothing stored) when the user is
    not registered on the topic.
    """
    outcome = await coordinator.insert_vote(topic_id, user_id, vote)
    return VoteResponse.from_outcome(outcome)
