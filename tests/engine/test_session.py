"""Tests for GameSession -- sequencing, logging, undo and persistence."""

from __future__ import annotations

import pytest

from scenario_engine.engine.core.game_state import PlayerStats
from scenario_engine.engine.session import GameSession
from scenario_engine.narration.narrator import Narrator


class _FakeClient:
    def __init__(self, reply: str = "  The river churns.  ", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def session(eco_rules) -> GameSession:
    return GameSession(eco_rules)


class TestActions:
    def test_fresh_session_starts_at_initial_situation(self, session):
        assert session.state.situation == "investigate_area"
        assert session.situation.label == "Field Investigation"
        assert not session.is_ended

    def test_player_profile(self, eco_rules):
        player = PlayerStats(name="Mei", language="en")
        session = GameSession(eco_rules, player=player)
        assert session.state.player.name == "Mei"
        assert session.state.player_baseline == player.attributes

    def test_available_actions(self, session):
        assert list(session.available_actions()) == [
            "observe", "investigate", "sample", "talk", "announce", "declare",
        ]

    def test_act_appends_action_then_procedural(self, session):
        turn = session.act("observe")

        assert [(e.id, e.type) for e in turn.entries] == [(1, "action"), (2, "procedural")]
        action = turn.entries[0]
        assert action.message == "Observe"
        assert [(c.id, c.delta) for c in action.changes] == [("clues", 1)]
        assert session.state.log == turn.entries
        assert turn.procedural_logs == turn.entries[1:]

    def test_target_in_action_message(self, session):
        turn = session.act("investigate", "dead fish")
        assert turn.entries[0].message == "Investigate: dead fish"

    def test_unchanged_turn_has_no_changes(self, session):
        turn = session.act("celebrate")
        assert len(turn.entries) == 1
        assert turn.entries[0].changes is None

    def test_log_ids_keep_increasing(self, session):
        session.act("observe")
        session.act("sample")
        ids = [e.id for e in session.state.log]
        assert ids == list(range(1, len(ids) + 1))

    def test_situation_change_reported(self, session):
        session.act("sample")
        turn = session.act("sample")
        assert turn.situation_changed
        assert session.state.situation == "technical_ops"
        assert "build" in session.available_actions()

    def test_apply_consequences(self, session):
        turn = session.apply_consequences([[{"set": "counters.testimony,true"}, {"log": "quiet"}]])
        assert turn.entries == []
        assert session.state.counters["testimony"] is True

    def test_reaching_an_ending(self, session):
        session.apply_consequences([[{"set": "next_situation,wrap_up"}]])
        assert session.is_ended
        assert session.state.player.history[0].rules_id == "eco_pollution"


class TestUndoAndPersistence:
    def test_undo(self, session):
        session.act("observe")
        session.act("sample")
        assert session.undo()
        assert session.state.counters["samples"] == 0
        assert session.state.counters["clues"] == 1
        assert session.undo()
        assert session.state.log == []
        assert not session.undo()

    def test_undo_limit(self, eco_rules):
        session = GameSession(eco_rules, max_undo=1)
        session.act("observe")
        session.act("observe")
        assert session.undo()
        assert not session.undo()

    def test_save_and_load(self, session, eco_rules, tmp_path):
        session.act("sample")
        path = tmp_path / "save.json"
        session.save(path)

        restored = GameSession.load(eco_rules, path)
        assert restored.state == session.state

        session.act("sample")
        restored.act("sample")
        assert restored.state == session.state


class TestNarration:
    def test_narrative_entry_appended(self, eco_rules):
        client = _FakeClient()
        session = GameSession(eco_rules, narrator=Narrator(client))

        turn = session.act("observe")
        assert turn.narrative is not None
        assert turn.narrative.type == "narrative"
        assert turn.narrative.message == "The river churns."
        assert turn.entries[-1] is turn.narrative
        assert session.state.log[-1].id == 3
        assert "Field Investigation" in client.prompts[0]

    def test_empty_narrative_skipped(self, eco_rules):
        session = GameSession(eco_rules, narrator=Narrator(_FakeClient(reply="   ")))
        turn = session.act("observe")
        assert turn.narrative is None
        assert len(turn.entries) == 2

    def test_narrator_failure_becomes_error_entry(self, eco_rules):
        client = _FakeClient(error=RuntimeError("boom"))
        session = GameSession(eco_rules, narrator=Narrator(client))

        turn = session.act("observe")
        assert turn.narrative.type == "error"
        assert "boom" in turn.narrative.message
        assert session.state.counters["clues"] == 1
