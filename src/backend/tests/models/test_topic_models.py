"""
Tests for topic voting state and hash bookkeeping.
"""

import json

import pytest

from core.security import sha256_hex
from models.topic import INITIAL_SETTING_HASH, PollResult, Setting, Topic
from models.user import TempCode, User


@pytest.mark.unit
class TestSetting:
    """Test voting state mutations and hashing."""

    def test_overwrite_vote_requires_voter(self) -> None:
        setting = Setting()
        assert setting.overwrite_vote("u1", {"p1": 1.0}) is False
        assert setting.votes == {}

    def test_overwrite_vote_replaces_whole_vote(self) -> None:
        setting = Setting(voters={"u1"})
        setting.overwrite_vote("u1", {"p1": 1.0, "p2": 2.0})
        setting.overwrite_vote("u1", {"p2": 3.0})
        assert setting.votes == {"u1": {"p2": 3.0}}

    def test_remove_voter_drops_vote(self) -> None:
        setting = Setting(voters={"u1", "u2"}, votes={"u1": {"p1": 1.0}})
        setting.remove_voter("u1")
        assert setting.voters == {"u2"}
        assert "u1" not in setting.votes

    def test_remove_plan_strips_weights(self) -> None:
        setting = Setting(voters={"u1"}, plans=["p1", "p2"], votes={"u1": {"p1": 1.0, "p2": 2.0}})
        setting.remove_plan("p1")
        assert setting.plans == ["p2"]
        assert setting.votes == {"u1": {"p2": 2.0}}

    def test_add_plan_keeps_order_without_duplicates(self) -> None:
        setting = Setting()
        for plan_id in ("b", "a", "b"):
            setting.add_plan(plan_id)
        assert setting.plans == ["b", "a"]

    def test_hash_ignores_insertion_order_of_voters_and_votes(self) -> None:
        first = Setting(voters={"u1", "u2"}, votes={"u1": {"a": 1.0, "b": 2.0}})
        second = Setting(voters={"u2", "u1"}, votes={"u1": {"b": 2.0, "a": 1.0}})
        assert first.based_hash() == second.based_hash()

    def test_hash_treats_int_and_float_weights_alike(self) -> None:
        first = Setting(voters={"u1"}, votes={"u1": {"a": 1}})
        second = Setting(voters={"u1"}, votes={"u1": {"a": 1.0}})
        assert first.based_hash() == second.based_hash()

    def test_hash_changes_with_weights(self) -> None:
        first = Setting(voters={"u1"}, votes={"u1": {"a": 1.0}})
        second = Setting(voters={"u1"}, votes={"u1": {"a": 2.0}})
        assert first.based_hash() != second.based_hash()

    def test_voters_serialize_sorted(self) -> None:
        setting = Setting(voters={"b", "a"})
        assert json.loads(setting.model_dump_json())["voters"] == ["a", "b"]


@pytest.mark.unit
class TestTopic:
    """Test topic identity and hash bookkeeping."""

    def test_id_addresses_title_and_description(self) -> None:
        topic = Topic.create("Lunch", "Where do we eat?")
        assert topic.id == sha256_hex("LunchWhere do we eat?")
        assert topic.setting_hash == topic.setting.based_hash()
        assert topic.setting_prev_hash == INITIAL_SETTING_HASH

    def test_list_item_is_id_title_pair(self) -> None:
        topic = Topic.create("Lunch", "")
        assert json.loads(topic.list_item()) == [topic.id, "Lunch"]

    def test_update_setting_hash_keeps_previous(self) -> None:
        topic = Topic.create("Lunch", "")
        assert topic.update_setting_hash("h1") is True
        assert topic.update_setting_hash("h2") is True
        assert (topic.setting_prev_hash, topic.setting_hash) == ("h1", "h2")

    def test_update_to_same_hash_is_noop(self) -> None:
        topic = Topic.create("Lunch", "")
        created_hash = topic.setting_hash
        topic.update_setting_hash("h1")
        assert topic.update_setting_hash("h1") is False
        assert topic.setting_prev_hash == created_hash

    def test_result_is_current_tracks_result_hash(self) -> None:
        topic = Topic.create("Lunch", "")
        topic.update_setting_hash("h1")
        assert topic.result_is_current is False

        topic.result = PollResult()
        topic.result_hash = "h1"
        assert topic.result_is_current is True

        topic.update_setting_hash("h2")
        assert topic.result_is_current is False

    def test_round_trips_through_json(self) -> None:
        topic = Topic.create("Lunch", "")
        topic.setting.add_voter("u1")
        restored = Topic.from_json(topic.to_json())
        assert restored == topic


@pytest.mark.unit
class TestIdentityDocuments:
    def test_temp_code_carries_ttl_and_no_list_item(self) -> None:
        temp_code = TempCode.issue("code", "user", ttl_seconds=60)
        assert temp_code.expires_in() == 60
        assert temp_code.list_item() is None

    def test_user_is_listed_by_id(self) -> None:
        user = User.register("alice", "alice@example.com")
        assert user.list_item() == user.id
        assert user.expires_in() is None
        assert user.is_verified is False
