"""
Setting snapshot and ad-hoc tally endpoints.
"""

from fastapi import APIRouter

from api.deps import CoordinatorDep
from models.topic import PollResult, Setting, SettingSnapshot

router = APIRouter()


@router.get("/setting/{setting_hash}", response_model=SettingSnapshot)
async def get_setting(setting_hash: str, coordinator: CoordinatorDep) -> SettingSnapshot:
    """The voting state and result cached under a setting hash."""
    return await coordinator.get_setting(setting_hash)


@router.post("/setting/calculate", response_model=PollResult)
async def calculate(setting: Setting, coordinator: CoordinatorDep) -> PollResult:
    """Run the tally engine on a setting without storing anything."""
    return await coordinator.calculate(setting)
