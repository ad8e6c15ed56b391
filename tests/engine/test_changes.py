"""Tests for state diffs shown next to action log entries."""

from scenario_engine.engine.changes import diff_states
from scenario_engine.engine.processor import process_action


def test_sample_reports_counter_then_track(eco_rules, eco_state):
    after = process_action(eco_rules, eco_state, "sample").new_state
    changes = diff_states(eco_rules, eco_state, after)

    assert [(c.id, c.delta) for c in changes] == [("samples", 1), ("eco.pollution", 1)]
    assert changes[0].icon == "Beaker"
    assert changes[0].color == "text-primary"
    assert changes[1].name == "Pollution"
    assert changes[1].icon == "AlertTriangle"
    assert changes[1].color == "text-rose-500"


def test_boolean_counters_skipped(eco_rules, eco_state):
    after = eco_state.model_copy(deep=True)
    after.counters["testimony"] = True
    assert diff_states(eco_rules, eco_state, after) == []


def test_no_changes(eco_rules, eco_state):
    assert diff_states(eco_rules, eco_state, eco_state.model_copy(deep=True)) == []


def test_default_icons_without_ui(make_rules):
    from scenario_engine.engine.core.game_state import new_game_state

    rules = make_rules()
    before = new_game_state(rules)
    after = before.model_copy(deep=True)
    after.counters["hits"] = 3
    after.tracks["meter"].value = 1

    changes = diff_states(rules, before, after)
    assert [(c.id, c.name, c.delta, c.icon) for c in changes] == [
        ("hits", "hits", 3, "Star"),
        ("meter", "Meter", -1, "Star"),
    ]


def test_counter_name_humanised(eco_rules, eco_state):
    before = eco_state.model_copy(deep=True)
    before.counters["shutdown_ok"] = 0
    after = before.model_copy(deep=True)
    after.counters["shutdown_ok"] = 1
    (change,) = diff_states(eco_rules, before, after)
    assert change.name == "shutdown ok"
    assert change.icon == "CheckCircle2"
