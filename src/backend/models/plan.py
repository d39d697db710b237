"""
Plan documents.

A plan is one proposal within a topic that can receive votes. Plans are a
closed set of variants told apart by the ``kind`` discriminant; each variant
derives its id from its own canonical text, so plans are immutable and
putting the same plan twice is an upsert.
"""

from typing import Annotated, ClassVar, Literal, Optional, Union

from pydantic import Field, TypeAdapter, computed_field

from core.security import sha256_hex
from models.base import StoredDocument

Latitude = Annotated[float, Field(ge=-90, le=90)]
Longitude = Annotated[float, Field(ge=-180, le=180)]


def format_point(lat: float, lng: float) -> str:
    return f"{lat:.6f},{lng:.6f}"


class PlanBase(StoredDocument):
    """Shared behaviour of all plan variants."""

    key_prefix: ClassVar[str] = "plan"

    kind: str

    def canonical_content(self) -> str:
        raise NotImplementedError

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return sha256_hex(f"{self.kind}:{self.canonical_content()}")

    def entity_id(self) -> str:
        return self.id

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Plan":
        return parse_plan(raw)


class SimplePlan(PlanBase):
    kind: Literal["simple"] = "simple"
    title: str = Field(..., min_length=1)

    def canonical_content(self) -> str:
        return self.title


class LongPlan(PlanBase):
    kind: Literal["long"] = "long"
    title: str = Field(..., min_length=1)
    description: str = ""

    def canonical_content(self) -> str:
        return self.title


class UrlPlan(PlanBase):
    kind: Literal["url"] = "url"
    title: str = Field(..., min_length=1)
    href: str = Field(..., min_length=1)

    def canonical_content(self) -> str:
        return f"{self.title}{self.href}"


class ImagePlan(PlanBase):
    kind: Literal["image"] = "image"
    href: str = Field(..., min_length=1)

    def canonical_content(self) -> str:
        return self.href


class LatLngPlan(PlanBase):
    kind: Literal["lat_lng"] = "lat_lng"
    label: Optional[str] = None
    lat: Latitude
    lng: Longitude

    def canonical_content(self) -> str:
        return format_point(self.lat, self.lng)


class CirclePlan(PlanBase):
    kind: Literal["circle"] = "circle"
    label: Optional[str] = None
    lat: Latitude
    lng: Longitude
    radius: float = Field(..., gt=0)

    def canonical_content(self) -> str:
        return f"{format_point(self.lat, self.lng)},{self.radius:.6f}"


class PathPlan(PlanBase):
    """An ordered polyline; point order is part of the identity."""

    kind: Literal["path"] = "path"
    label: Optional[str] = None
    points: list[tuple[Latitude, Longitude]] = Field(..., min_length=2)

    def canonical_content(self) -> str:
        return ";".join(format_point(lat, lng) for lat, lng in self.points)


Plan = Annotated[
    Union[SimplePlan, LongPlan, UrlPlan, ImagePlan, LatLngPlan, CirclePlan, PathPlan],
    Field(discriminator="kind"),
]

plan_adapter: TypeAdapter[Plan] = TypeAdapter(Plan)


def parse_plan(raw: str | bytes) -> Plan:
    """Parse a serialized plan of any variant."""
    return plan_adapter.validate_json(raw)
