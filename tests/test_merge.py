"""Tests for per-field merge policies."""

import copy

import pytest

from spoilerfree.errors import ImmutableFieldError, ValidationError
from spoilerfree.merge import apply_updates, deep_merge, merge_by_id, parse_set_args


def _make_race(**overrides):
    race = {
        "id": "paris-roubaix-2026",
        "name": "Paris-Roubaix",
        "raceDate": "2026-04-12",
        "rating": 5,
        "terrain": ["cobbles"],
        "broadcast": {"geos": {"US": {"primary": {"broadcaster": "FloBikes", "url": "TBD"}}}},
        "topRiders": [{"id": "tadej-pogacar", "name": "Tadej Pogacar", "ranking": 1}],
        "stages": [{"stageNumber": 1}],
    }
    race.update(overrides)
    return race


class TestDeepMerge:
    def test_nested_keys_survive(self):
        merged = deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}})
        assert merged == {"a": {"b": 1, "c": 3}}

    def test_none_values_ignored(self):
        assert deep_merge({"a": 1}, {"a": None}) == {"a": 1}

    def test_lists_replace(self):
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_does_not_mutate(self):
        target = {"a": {"b": 1}}
        deep_merge(target, {"a": {"b": 2}})
        assert target == {"a": {"b": 1}}


class TestMergeById:
    def test_updates_in_place_and_appends_new(self):
        existing = [{"id": "a", "n": 1}, {"id": "b", "n": 2}]
        incoming = [{"id": "b", "n": 20}, {"id": "c", "n": 3}]
        assert merge_by_id(existing, incoming) == [
            {"id": "a", "n": 1},
            {"id": "b", "n": 20},
            {"id": "c", "n": 3},
        ]

    def test_entries_without_id_append_once(self):
        merged = merge_by_id([{"note": "x"}], [{"note": "x"}, {"note": "y"}])
        assert merged == [{"note": "x"}, {"note": "y"}]

    def test_empty_incoming_keeps_existing(self):
        assert merge_by_id([{"id": "a"}], []) == [{"id": "a"}]


class TestApplyUpdates:
    def test_primitive_replaces(self):
        updated = apply_updates(_make_race(), {"rating": 4, "platform": "Peacock"})
        assert updated["rating"] == 4
        assert updated["platform"] == "Peacock"

    def test_broadcast_deep_merges(self):
        updates = {"broadcast": {"geos": {"GB": {"primary": {"broadcaster": "Discovery+"}}}}}
        updated = apply_updates(_make_race(), updates)
        assert set(updated["broadcast"]["geos"]) == {"US", "GB"}

    def test_top_riders_merge_by_id(self):
        updates = {"topRiders": [{"id": "tadej-pogacar", "ranking": 2}, {"id": "mvdp", "name": "MVDP"}]}
        updated = apply_updates(_make_race(), updates)
        assert [r["id"] for r in updated["topRiders"]] == ["tadej-pogacar", "mvdp"]
        assert updated["topRiders"][0] == {"id": "tadej-pogacar", "name": "Tadej Pogacar", "ranking": 2}

    def test_reapplying_same_updates_is_stable(self):
        updates = {
            "topRiders": [{"id": "tadej-pogacar", "ranking": 2}, {"id": "mvdp", "name": "MVDP"}],
            "broadcast": {"geos": {"GB": {"primary": {"url": "https://www.discoveryplus.com/gb/sport/cycling"}}}},
        }
        once = apply_updates(_make_race(), updates)
        twice = apply_updates(once, updates)
        assert twice == once
        assert [r["id"] for r in twice["topRiders"]] == ["tadej-pogacar", "mvdp"]

    def test_stages_replace_with_warning(self, caplog):
        updated = apply_updates(_make_race(), {"stages": [{"stageNumber": 1}, {"stageNumber": 2}]})
        assert len(updated["stages"]) == 2
        assert "Replacing existing stages" in caplog.text

    def test_terrain_list_replaces(self):
        assert apply_updates(_make_race(), {"terrain": ["flat"]})["terrain"] == ["flat"]

    def test_null_update_leaves_field(self):
        assert apply_updates(_make_race(), {"rating": None})["rating"] == 5

    def test_same_id_allowed(self):
        assert apply_updates(_make_race(), {"id": "paris-roubaix-2026"})["id"] == "paris-roubaix-2026"

    def test_changing_id_rejected(self):
        with pytest.raises(ImmutableFieldError):
            apply_updates(_make_race(), {"id": "something-else"})

    def test_input_not_mutated(self):
        race = _make_race()
        before = copy.deepcopy(race)
        apply_updates(race, {"broadcast": {"geos": {"US": {"primary": {"url": "https://x.test/y"}}}}})
        assert race == before

    def test_non_dict_rejected(self):
        with pytest.raises(ValidationError):
            apply_updates(_make_race(), ["rating", 4])


class TestParseSetArgs:
    def test_json_values_decoded(self):
        assert parse_set_args(["rating=4", "verified=true", 'terrain=["flat"]']) == {
            "rating": 4,
            "verified": True,
            "terrain": ["flat"],
        }

    def test_plain_strings_kept(self):
        assert parse_set_args(["platform=FloBikes"]) == {"platform": "FloBikes"}

    def test_equals_in_value(self):
        assert parse_set_args(["url=https://x.test/?a=1"]) == {"url": "https://x.test/?a=1"}

    def test_missing_equals(self):
        with pytest.raises(ValidationError):
            parse_set_args(["rating"])
