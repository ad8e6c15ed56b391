"""Rule-driven state transition engine."""

from scenario_engine.engine.changes import diff_states
from scenario_engine.engine.conditions import (
    ConditionError,
    ConditionEvaluationError,
    ConditionSyntaxError,
    evaluate,
    parse_condition,
)
from scenario_engine.engine.interpreter import EffectInterpreter
from scenario_engine.engine.matcher import match_rule
from scenario_engine.engine.processor import ActionResult, process_action
from scenario_engine.engine.session import GameSession, TurnResult
from scenario_engine.engine.transitions import record_ending, resolve_transition

__all__ = [
    # changes
    "diff_states",
    # conditions
    "ConditionError",
    "ConditionEvaluationError",
    "ConditionSyntaxError",
    "evaluate",
    "parse_condition",
    # interpreter
    "EffectInterpreter",
    # matcher
    "match_rule",
    # processor
    "ActionResult",
    "process_action",
    # session
    "GameSession",
    "TurnResult",
    # transitions
    "record_ending",
    "resolve_transition",
]
