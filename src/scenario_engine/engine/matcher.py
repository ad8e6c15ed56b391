"""Rule matcher -- picks the rule in a situation that answers a player action.

Rules are scanned in declaration order and the first whose trigger holds
wins.  Later rules are never consulted, even if they would also match.
"""

from __future__ import annotations

import logging
import re

from scenario_engine.engine.conditions import evaluate
from scenario_engine.engine.core.game_state import GameState
from scenario_engine.ir.rules import ActionRule, Situation, Trigger

logger = logging.getLogger(__name__)


def _regex_matches(pattern: str, target: str, *, anchored: bool) -> bool:
    try:
        if anchored:
            return re.fullmatch(f"({pattern})", target, re.IGNORECASE) is not None
        return re.search(pattern, target, re.IGNORECASE) is not None
    except re.error as exc:
        logger.warning("Invalid rule pattern %r: %s", pattern, exc)
        return False


def trigger_matches(
    when: Trigger,
    action_id: str,
    target: str | None,
    state: GameState,
) -> bool:
    """Return True if every condition present on *when* holds.

    A ``targetPattern`` or ``textRegex`` needs a target to match against,
    so such rules never fire for a targetless action.  Rules without
    either accept any target.
    """
    if when.action_id != action_id:
        return False

    if when.target_pattern:
        if not target or not _regex_matches(when.target_pattern, target, anchored=True):
            return False

    if when.text_regex:
        if not target or not _regex_matches(when.text_regex, target, anchored=False):
            return False

    if when.require and not evaluate(when.require, state):
        return False

    return True


def match_rule(
    situation: Situation,
    action_id: str,
    target: str | None,
    state: GameState,
) -> ActionRule | None:
    """Return the first rule of *situation* matching the action, or ``None``."""
    for rule in situation.on_action:
        if trigger_matches(rule.when, action_id, target, state):
            return rule
    return None
