"""
Tests for plan variants and their content-addressed ids.
"""

import pytest
from pydantic import ValidationError

from core.security import sha256_hex
from models.plan import (
    CirclePlan,
    ImagePlan,
    LatLngPlan,
    LongPlan,
    PathPlan,
    SimplePlan,
    UrlPlan,
    parse_plan,
)


@pytest.mark.unit
class TestPlanIds:
    """Test plan id derivation."""

    def test_simple_plan_hashes_kind_and_title(self) -> None:
        assert SimplePlan(title="Park").id == sha256_hex("simple:Park")

    def test_long_plan_hashes_title_only(self) -> None:
        first = LongPlan(title="Park", description="with trees")
        second = LongPlan(title="Park", description="with benches")
        assert first.id == second.id

    def test_same_text_different_kind_does_not_collide(self) -> None:
        assert SimplePlan(title="Park").id != LongPlan(title="Park").id

    def test_image_hashes_href(self) -> None:
        assert ImagePlan(href="https://img/1.png").id == sha256_hex("image:https://img/1.png")

    def test_url_plan_hashes_title_and_href(self) -> None:
        assert UrlPlan(title="Docs", href="https://a").id != UrlPlan(title="Docs", href="https://b").id

    def test_lat_lng_ignores_label(self) -> None:
        assert LatLngPlan(lat=1.5, lng=2.5, label="x").id == LatLngPlan(lat=1.5, lng=2.5).id

    def test_circle_includes_radius(self) -> None:
        assert CirclePlan(lat=1, lng=2, radius=10).id != CirclePlan(lat=1, lng=2, radius=20).id

    def test_path_point_order_matters(self) -> None:
        forward = PathPlan(points=[(0, 0), (1, 1)])
        backward = PathPlan(points=[(1, 1), (0, 0)])
        assert forward.id != backward.id


@pytest.mark.unit
class TestPlanValidation:
    """Test variant constraints."""

    def test_latitude_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            LatLngPlan(lat=91, lng=0)

    def test_circle_needs_positive_radius(self) -> None:
        with pytest.raises(ValidationError):
            CirclePlan(lat=0, lng=0, radius=0)

    def test_path_needs_two_points(self) -> None:
        with pytest.raises(ValidationError):
            PathPlan(points=[(0, 0)])

    def test_empty_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SimplePlan(title="")


@pytest.mark.unit
class TestParsePlan:
    """Test discriminated parsing of stored plans."""

    def test_parses_stored_variant(self) -> None:
        plan = CirclePlan(label="Square", lat=48.1, lng=11.5, radius=250)

        parsed = parse_plan(plan.to_json())

        assert isinstance(parsed, CirclePlan)
        assert parsed.id == plan.id

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_plan('{"kind": "polygon", "points": []}')

    def test_stored_json_carries_id(self) -> None:
        plan = SimplePlan(title="Park")
        assert f'"id":"{plan.id}"' in plan.to_json()
