"""Document models stored in the key-value store."""

from models.base import Entity, StoredDocument
from models.plan import Plan, PlanBase, parse_plan
from models.topic import PollResult, Setting, SettingSnapshot, Topic
from models.user import AccessToken, TempCode, User

__all__ = [
    "Entity",
    "StoredDocument",
    "Plan",
    "PlanBase",
    "parse_plan",
    "PollResult",
    "Setting",
    "SettingSnapshot",
    "Topic",
    "AccessToken",
    "TempCode",
    "User",
]
