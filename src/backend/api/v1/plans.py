"""
Plan endpoints.

Plans are immutable and content-addressed; putting the same plan twice
returns the same id.
"""

from fastapi import APIRouter

from api.deps import CoordinatorDep
from schemas.topic import PlanCreated, PlanPayload

router = APIRouter()


@router.put("/plan", response_model=PlanCreated)
async def put_plan(payload: PlanPayload, coordinator: CoordinatorDep) -> PlanCreated:
    plan_id = await coordinator.put_plan(payload.root)
    return PlanCreated(id=plan_id)


@router.get("/plan/{plan_id}", response_model=PlanPayload)
async def get_plan(plan_id: str, coordinator: CoordinatorDep) -> PlanPayload:
    plan = await coordinator.get_plan(plan_id)
    return PlanPayload(plan)


@router.get("/plans", response_model=list[str])
async def list_plans(coordinator: CoordinatorDep) -> list[str]:
    """Ids in the plans membership set."""
    return await coordinator.list_plans()
