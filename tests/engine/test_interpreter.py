"""Tests for the Effect interpreter."""

import pytest

from scenario_engine.engine.core.game_state import GameState, Track
from scenario_engine.engine.interpreter import EffectInterpreter
from scenario_engine.ir.effects import Effect
from scenario_engine.ir.items import Item


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_state(**kwargs) -> GameState:
    defaults = dict(
        situation="start",
        counters={"clues": 0, "samples": 0, "testimony": False},
        tracks={
            "pollution": Track(name="Pollution", value=2, max=10),
            "media": Track(name="Media", value=3, max=10),
        },
    )
    defaults.update(kwargs)
    return GameState(**defaults)


def _effects(*raw: dict) -> list[Effect]:
    return [Effect.model_validate(r) for r in raw]


def _run(state: GameState, *raw: dict, narrative: bool = True) -> list[str]:
    logs: list[str] = []
    EffectInterpreter().apply_effects(_effects(*raw), state, logs, narrative=narrative)
    return logs


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------

class TestAdd:
    def test_adds_to_counter(self):
        state = _make_state()
        _run(state, {"add": "counters.clues,1"}, {"add": "counters.clues,2"})
        assert state.counters["clues"] == 3

    def test_negative_delta(self):
        state = _make_state(counters={"clues": 3})
        _run(state, {"add": "counters.clues,-2"})
        assert state.counters["clues"] == 1

    def test_cap(self):
        state = _make_state(counters={"clues": 2})
        _run(state, {"add": "counters.clues,1", "cap": 2})
        assert state.counters["clues"] == 2

    def test_cap_only_limits_from_above(self):
        state = _make_state(counters={"clues": 5})
        _run(state, {"add": "counters.clues,-1", "cap": 2})
        assert state.counters["clues"] == 2

    def test_unknown_counter_not_created(self):
        state = _make_state()
        _run(state, {"add": "counters.ghosts,1"})
        assert "ghosts" not in state.counters

    def test_boolean_counter_untouched(self):
        state = _make_state()
        _run(state, {"add": "counters.testimony,1"})
        assert state.counters["testimony"] is False

    def test_add_to_track_path(self):
        state = _make_state()
        _run(state, {"add": "tracks.media,4"})
        assert state.tracks["media"].value == 7

    @pytest.mark.parametrize("raw", ["counters.clues", "counters.clues,abc", "counters.clues,1.5"])
    def test_malformed_is_noop(self, raw):
        state = _make_state()
        _run(state, {"add": raw})
        assert state.counters["clues"] == 0

    def test_whitespace_around_params(self):
        state = _make_state()
        _run(state, {"add": " counters.clues , 2 "})
        assert state.counters["clues"] == 2


# ---------------------------------------------------------------------------
# set
# ---------------------------------------------------------------------------

class TestSet:
    def test_next_situation(self):
        state = _make_state()
        _run(state, {"set": "next_situation,technical_ops"})
        assert state.next_situation == "technical_ops"
        assert state.situation == "start"

    def test_route_keeps_dots(self):
        state = _make_state()
        _run(state, {"set": "route,policy.engineering"})
        assert state.route == "policy.engineering"

    def test_boolean_literal(self):
        state = _make_state()
        _run(state, {"set": "counters.testimony,true"})
        assert state.counters["testimony"] is True
        _run(state, {"set": "counters.testimony,FALSE"})
        assert state.counters["testimony"] is False

    def test_numeric_literal(self):
        state = _make_state()
        _run(state, {"set": "counters.samples,4"})
        assert state.counters["samples"] == 4
        _run(state, {"set": "counters.samples,2.5"})
        assert state.counters["samples"] == 2.5

    def test_numeric_set_honours_cap(self):
        state = _make_state()
        _run(state, {"set": "counters.samples,9", "cap": 3})
        assert state.counters["samples"] == 3

    def test_non_numeric_value_ignored(self):
        state = _make_state()
        _run(state, {"set": "counters.samples,lots"})
        assert state.counters["samples"] == 0

    @pytest.mark.parametrize("raw", ["nan", "NaN", "inf", "-Infinity"])
    def test_non_finite_value_ignored(self, raw):
        state = _make_state()
        _run(state, {"set": f"counters.samples,{raw}"})
        assert state.counters["samples"] == 0

    def test_state_survives_save_after_non_finite_set(self):
        state = _make_state()
        _run(state, {"set": "counters.samples,nan"}, {"set": "counters.clues,2.5"})
        restored = GameState.from_json(state.to_json())
        assert restored == state
        assert restored.counters["clues"] == 2.5

    def test_unknown_counter_not_created(self):
        state = _make_state()
        _run(state, {"set": "counters.ghosts,true"})
        assert "ghosts" not in state.counters

    def test_unsupported_path_ignored(self):
        state = _make_state()
        before = state.model_copy(deep=True)
        _run(state, {"set": "player.name,Bob"})
        assert state == before


# ---------------------------------------------------------------------------
# track
# ---------------------------------------------------------------------------

class TestTrack:
    def test_shift(self):
        state = _make_state()
        _run(state, {"track": "pollution,3"})
        assert state.tracks["pollution"].value == 5

    def test_clamped_to_max(self):
        state = _make_state()
        _run(state, {"track": "pollution,50"})
        assert state.tracks["pollution"].value == 10

    def test_clamped_to_zero(self):
        state = _make_state()
        _run(state, {"track": "pollution,-50"})
        assert state.tracks["pollution"].value == 0

    def test_cap_then_clamp(self):
        state = _make_state()
        _run(state, {"track": "pollution,5", "cap": 4})
        assert state.tracks["pollution"].value == 4

    def test_unknown_track_ignored(self):
        state = _make_state()
        _run(state, {"track": "morale,1"})
        assert set(state.tracks) == {"pollution", "media"}

    def test_dotted_track_id(self):
        state = _make_state(tracks={"eco.pollution": Track(name="P", value=1, max=3)})
        _run(state, {"track": "eco.pollution,1"})
        assert state.tracks["eco.pollution"].value == 2


# ---------------------------------------------------------------------------
# log, guards, narrative suppression
# ---------------------------------------------------------------------------

class TestLogAndGuards:
    def test_log_collected_in_order(self):
        state = _make_state()
        logs = _run(state, {"log": "one"}, {"secret": "two"}, {"agreement": "three"})
        assert logs == ["one", "two", "three"]

    def test_log_does_not_change_state(self):
        state = _make_state()
        before = state.model_copy(deep=True)
        _run(state, {"log": "hello"})
        assert state == before

    def test_false_guard_skips_only_that_effect(self):
        state = _make_state()
        logs = _run(
            state,
            {"add": "counters.clues,1", "if": "counters.samples > 0"},
            {"add": "counters.samples,1"},
            {"log": "done"},
        )
        assert state.counters == {"clues": 0, "samples": 1, "testimony": False}
        assert logs == ["done"]

    def test_guard_sees_earlier_effects(self):
        state = _make_state()
        _run(
            state,
            {"add": "counters.samples,2"},
            {"set": "next_situation,lab", "if": "counters.samples >= 2"},
        )
        assert state.next_situation == "lab"

    def test_broken_guard_skips_effect(self):
        state = _make_state()
        _run(state, {"add": "counters.clues,1", "if": "counters.nope >= 1"})
        assert state.counters["clues"] == 0

    def test_narrative_suppressed(self):
        state = _make_state()
        logs = _run(
            state,
            {"log": "hidden"},
            {"secret": "hidden"},
            {"add": "counters.clues,1"},
            narrative=False,
        )
        assert logs == []
        assert state.counters["clues"] == 1

    def test_unknown_effect_key_is_noop(self):
        state = _make_state()
        before = state.model_copy(deep=True)
        logs = _run(state, {"explode": "everything"})
        assert logs == []
        assert state == before


# ---------------------------------------------------------------------------
# items and known targets
# ---------------------------------------------------------------------------

class TestInventoryAndTargets:
    def test_give_item_once(self):
        state = _make_state()
        badge = {"id": "badge", "name": "Badge"}
        _run(state, {"give_item": badge}, {"give_item": badge})
        assert [i.id for i in state.player.inventory] == ["badge"]

    def test_remove_item(self):
        state = _make_state()
        state.player.inventory.append(Item(id="kit", name="Sampling Kit"))
        _run(state, {"remove_item": "kit"})
        assert state.player.inventory == []

    def test_remove_missing_item_is_noop(self):
        state = _make_state()
        _run(state, {"remove_item": "kit"})
        assert state.player.inventory == []

    def test_add_known_target_dedupes(self):
        state = _make_state()
        _run(state, {"addKnownTarget": "outlet"}, {"addKnownTarget": "outlet"})
        assert state.known_targets == ["outlet"]
