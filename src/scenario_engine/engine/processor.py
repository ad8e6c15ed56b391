"""Action processor -- runs one player action through the rule engine.

Steps for a normal action:
    1. Look up the current situation (unknown id -> nothing happens).
    2. Find the first matching rule in it.
    3. Apply the rule's ``do`` block (or ``fail`` block when the external
       check failed) to a deep copy of the state.
    4. Resolve automatic / pending situation transitions.

Override mode replaces steps 1-3: the supplied effect lists run directly,
with narrative-only effects suppressed.  It is used for scripted
follow-up consequences (e.g. after a conversation) and never combined
with rule matching in the same call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from scenario_engine.engine.core.game_state import GameState, LogEntry
from scenario_engine.engine.interpreter import EffectInterpreter
from scenario_engine.engine.matcher import match_rule
from scenario_engine.engine.transitions import resolve_transition
from scenario_engine.ir.effects import Effect
from scenario_engine.ir.rules import ActionRule, GameRules

logger = logging.getLogger(__name__)

_DEFAULT_INTERPRETER = EffectInterpreter()

OverrideEffects = Sequence[Sequence[Effect | Mapping[str, Any]]]


@dataclass
class ActionResult:
    """Outcome of :func:`process_action`.

    Attributes
    ----------
    new_state:
        The state after effects and transitions.  Independent of the input.
    procedural_logs:
        One ``procedural`` entry per log effect that ran, in order.
    rule:
        The rule that fired, or ``None`` (no match, or override mode).
    situation_changed:
        ``True`` if a transition fired.
    """

    new_state: GameState
    procedural_logs: list[LogEntry] = field(default_factory=list)
    rule: ActionRule | None = None
    situation_changed: bool = False


def _coerce_effects(effects: Sequence[Effect | Mapping[str, Any]]) -> list[Effect]:
    return [e if isinstance(e, Effect) else Effect.model_validate(e) for e in effects]


def process_action(
    rules: GameRules,
    state: GameState,
    action_id: str,
    target: str | None = None,
    is_success: bool = True,
    overrides: OverrideEffects | None = None,
    *,
    interpreter: EffectInterpreter | None = None,
) -> ActionResult:
    """Process one action and return the new state plus procedural logs.

    Parameters
    ----------
    rules:
        The scenario's rule document.
    state:
        Current state.  Never mutated.
    action_id:
        Verb id chosen by the player.
    target:
        Optional free text the player attached to the action.
    is_success:
        Outcome of any external check; selects ``do`` vs ``fail``.
    overrides:
        Effect lists to run instead of rule matching.
    """
    interpreter = interpreter or _DEFAULT_INTERPRETER
    messages: list[str] = []
    rule: ActionRule | None = None

    if overrides is not None:
        draft = state.model_copy(deep=True)
        for effects in overrides:
            interpreter.apply_effects(
                _coerce_effects(effects), draft, messages, narrative=False
            )
    else:
        situation = rules.get_situation(state.situation)
        if situation is None:
            logger.warning(
                "Situation %r is not defined in rules %r; action %r ignored",
                state.situation,
                rules.id,
                action_id,
            )
            return ActionResult(new_state=state.model_copy(deep=True))

        rule = match_rule(situation, action_id, target, state)
        draft = state.model_copy(deep=True)
        if rule is None:
            logger.debug("No rule for action %r (target=%r) in %r", action_id, target, state.situation)
        else:
            effects = rule.effects_for(is_success)
            if effects:
                interpreter.apply_effects(effects, draft, messages)

    new_state, changed = resolve_transition(rules, draft)

    first_id = state.next_log_id()
    procedural_logs = [
        LogEntry(id=first_id + i, type="procedural", message=message)
        for i, message in enumerate(messages)
    ]
    return ActionResult(
        new_state=new_state,
        procedural_logs=procedural_logs,
        rule=rule,
        situation_changed=changed,
    )
