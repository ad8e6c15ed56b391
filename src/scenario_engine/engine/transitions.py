"""Situation transitions: automatic ``auto_enter_if`` and manual ``next_situation``.

After a turn's effects have been applied the resolver decides whether the
player moves.  Automatic transitions are checked first and cancel any
pending manual one; a pending ``next_situation`` is only consumed when no
situation auto-enters.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from scenario_engine.engine.conditions import evaluate
from scenario_engine.engine.core.game_state import (
    AttributeChange,
    CompletedScenario,
    GameState,
    PlayerAttributes,
)
from scenario_engine.ir.rules import GameRules

logger = logging.getLogger(__name__)


def find_auto_transition(rules: GameRules, state: GameState) -> str | None:
    """Return the first situation (declaration order) whose ``auto_enter_if`` holds."""
    for situation_id, situation in rules.situations.items():
        if situation.auto_enter_if and evaluate(situation.auto_enter_if, state):
            return situation_id
    return None


def resolve_transition(rules: GameRules, state: GameState) -> tuple[GameState, bool]:
    """Apply at most one situation change to *state*.

    Returns a ``(state, changed)`` pair.  *state* itself is never mutated;
    when a transition fires the returned state is a fresh copy.

    A ``next_situation`` naming a situation that does not exist is left
    pending and has no effect.
    """
    auto_id = find_auto_transition(rules, state)
    if auto_id is not None:
        new_state = state.model_copy(deep=True)
        new_state.situation = auto_id
        new_state.next_situation = None
        logger.debug("Auto-entered situation %r", auto_id)
        return record_ending(rules, new_state), True

    pending = state.next_situation
    if pending and pending in rules.situations:
        new_state = state.model_copy(deep=True)
        new_state.situation = pending
        new_state.next_situation = None
        logger.debug("Moved to pending situation %r", pending)
        return record_ending(rules, new_state), True

    if pending:
        logger.debug("Pending situation %r does not exist; left inert", pending)
    return state, False


def _attribute_changes(
    before: PlayerAttributes, after: PlayerAttributes
) -> list[AttributeChange]:
    changes: list[AttributeChange] = []
    old_values = before.model_dump()
    for attribute, new_value in after.model_dump().items():
        old_value = old_values.get(attribute, 0)
        if new_value != old_value:
            changes.append(
                AttributeChange(
                    attribute=attribute,
                    change=new_value - old_value,
                    old_value=old_value,
                    new_value=new_value,
                )
            )
    return changes


def record_ending(
    rules: GameRules,
    state: GameState,
    *,
    now: datetime | None = None,
) -> GameState:
    """Append a history entry if *state* sits in an ending situation.

    Only one entry per scenario id is ever recorded, so re-entering an
    ending (or reloading a save) does not duplicate history.  Returns a new
    state when an entry is added, otherwise *state* unchanged.
    """
    situation = rules.get_situation(state.situation)
    if situation is None or not situation.ending:
        return state
    if any(entry.rules_id == rules.id for entry in state.player.history):
        return state

    baseline = state.player_baseline or PlayerAttributes()
    final = state.player.attributes
    entry = CompletedScenario(
        rules_id=rules.id,
        title=rules.title,
        completion_date=(now or datetime.now(timezone.utc)).isoformat(),
        ending_situation_id=state.situation,
        ending_situation_label=situation.label,
        attribute_changes=_attribute_changes(baseline, final),
        final_attributes=final.model_copy(),
    )
    new_state = state.model_copy(deep=True)
    new_state.player.history.append(entry)
    logger.info("Scenario %r ended in %r", rules.id, state.situation)
    return new_state
