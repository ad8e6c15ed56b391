"""GameSession -- the single authoritative handle on a running scenario.

The engine functions are pure: they take a state and return a new one.
A session owns the current value, sequences actions against it, appends
log entries, keeps snapshots for undo, and optionally asks a narrator to
turn procedural results into prose.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from scenario_engine.engine.changes import diff_states
from scenario_engine.engine.core.game_state import (
    GameState,
    LogEntry,
    LogEntryType,
    PlayerStats,
    new_game_state,
)
from scenario_engine.engine.processor import ActionResult, OverrideEffects, process_action
from scenario_engine.ir.rules import ActionDetail, GameRules, Situation

if TYPE_CHECKING:
    from scenario_engine.narration.narrator import Narrator

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """Log entries appended by one session turn, plus the resulting state."""

    state: GameState
    entries: list[LogEntry] = field(default_factory=list)
    procedural_logs: list[LogEntry] = field(default_factory=list)
    narrative: LogEntry | None = None
    situation_changed: bool = False


class GameSession:
    """Runs actions for one player against one rule document.

    Parameters
    ----------
    rules:
        The scenario being played.
    state:
        State to resume from.  Defaults to a fresh game.
    player:
        Player profile for a fresh game (ignored when *state* is given).
    narrator:
        Optional narrator; when set, every action also gets a narrative
        log entry.
    max_undo:
        Number of prior snapshots kept for :meth:`undo`.
    """

    def __init__(
        self,
        rules: GameRules,
        state: GameState | None = None,
        *,
        player: PlayerStats | None = None,
        narrator: Narrator | None = None,
        max_undo: int = 50,
    ) -> None:
        self.rules = rules
        self._state = state if state is not None else new_game_state(rules, player)
        self._narrator = narrator
        self._snapshots: deque[GameState] = deque(maxlen=max_undo)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def situation(self) -> Situation | None:
        return self.rules.get_situation(self._state.situation)

    @property
    def is_ended(self) -> bool:
        situation = self.situation
        return situation is not None and situation.ending

    def available_actions(self) -> dict[str, ActionDetail]:
        """Actions the current situation offers that exist in the catalog."""
        situation = self.situation
        if situation is None:
            return {}
        return {
            action_id: self.rules.actions[action_id]
            for action_id in situation.allowed_actions
            if action_id in self.rules.actions
        }

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def act(
        self,
        action_id: str,
        target: str | None = None,
        is_success: bool = True,
    ) -> TurnResult:
        """Process a player action and append its log entries."""
        before = self._state
        result = process_action(self.rules, before, action_id, target, is_success)

        label = self.rules.action_label(action_id)
        message = f"{label}: {target}" if target else label
        turn = self._commit(before, result, message)

        if self._narrator is not None:
            turn.narrative = self._narrate(before, result, action_id, target)
            if turn.narrative is not None:
                turn.entries.append(turn.narrative)
            turn.state = self._state
        return turn

    def apply_consequences(self, overrides: OverrideEffects) -> TurnResult:
        """Run scripted effect lists (override mode) against the current state."""
        before = self._state
        result = process_action(self.rules, before, "", overrides=overrides)
        return self._commit(before, result, None)

    def undo(self) -> bool:
        """Restore the snapshot taken before the last turn."""
        if not self._snapshots:
            return False
        self._state = self._snapshots.pop()
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: str | Path) -> None:
        Path(path).write_text(self._state.to_json(indent=2), encoding="utf-8")

    @classmethod
    def load(cls, rules: GameRules, path: str | Path, **kwargs) -> "GameSession":
        state = GameState.from_json(Path(path).read_text(encoding="utf-8"))
        return cls(rules, state, **kwargs)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _commit(
        self,
        before: GameState,
        result: ActionResult,
        action_message: str | None,
    ) -> TurnResult:
        state = result.new_state
        entries: list[LogEntry] = []

        if action_message is not None:
            changes = diff_states(self.rules, before, state)
            entries.append(
                self._append(state, "action", action_message, changes=changes or None)
            )
        procedural = [
            self._append(state, "procedural", entry.message) for entry in result.procedural_logs
        ]
        entries.extend(procedural)

        self._snapshots.append(before)
        self._state = state
        return TurnResult(
            state=state,
            entries=entries,
            procedural_logs=procedural,
            situation_changed=result.situation_changed,
        )

    def _narrate(
        self,
        before: GameState,
        result: ActionResult,
        action_id: str,
        target: str | None,
    ) -> LogEntry | None:
        request = self._narrator.request_for(self.rules, before, result, action_id, target)
        try:
            text = self._narrator.narrate(request)
        except Exception as exc:
            logger.exception("Narration failed for action %r", action_id)
            return self._append(self._state, "error", f"Narration unavailable: {exc}")
        if not text:
            return None
        return self._append(self._state, "narrative", text)

    @staticmethod
    def _append(
        state: GameState,
        entry_type: LogEntryType,
        message: str,
        **extra,
    ) -> LogEntry:
        entry = LogEntry(id=state.next_log_id(), type=entry_type, message=message, **extra)
        state.log.append(entry)
        return entry
