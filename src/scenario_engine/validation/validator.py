"""Static well-formedness checks for rule documents.

The validator works on the raw JSON shape (a mapping) so it can report on
documents that would not even load into :class:`GameRules`.  It never runs
condition expressions or touches game state; expressions are only parsed
to catch syntax errors.

Severity policy: anything that makes the engine silently do nothing or
misbehave is an ``error``; completeness concerns are a ``warning``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from scenario_engine.engine.conditions import ConditionSyntaxError, parse_condition
from scenario_engine.ir.effects import EFFECT_KEYS, MODIFIER_KEYS
from scenario_engine.ir.rules import GameRules


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    severity: Severity
    message: str
    path: str | None = None

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path else ""
        return f"[{self.severity.value}] {self.message}{where}"


def _error(message: str, path: str | None = None) -> ValidationIssue:
    return ValidationIssue(Severity.ERROR, message, path)


def _warning(message: str, path: str | None = None) -> ValidationIssue:
    return ValidationIssue(Severity.WARNING, message, path)


_REQUIRED_TOP_LEVEL = ("id", "title", "language", "actions", "initial", "tracks", "situations")
_REQUIRED_ACTION_FIELDS = ("label", "icon")
_REQUIRED_TRACK_FIELDS = ("name", "value", "max")

_INT_PARAM_RE = re.compile(r"^[+-]?\d+$")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _missing(section: Mapping[str, Any], field: str) -> bool:
    return section.get(field) is None


# ---------------------------------------------------------------------------
# Section checks
# ---------------------------------------------------------------------------

class _Context:
    """Names declared at the top level, used for reference checks."""

    def __init__(self, doc: Mapping[str, Any]) -> None:
        self.action_ids = set(doc["actions"])
        self.track_ids = set(doc["tracks"])
        self.situation_ids = set(doc["situations"])
        counters = doc["initial"].get("counters") if isinstance(doc["initial"], Mapping) else None
        self.counter_ids = set(counters) if isinstance(counters, Mapping) else set()


def _check_condition(expression: Any, label: str, path: str) -> list[ValidationIssue]:
    if not isinstance(expression, str):
        return [_error(f"{label} must be a string expression.", path)]
    try:
        parse_condition(expression)
    except ConditionSyntaxError as exc:
        return [_error(f"{label} {expression!r} is not a valid expression: {exc}", path)]
    return []


def _check_regex(pattern: Any, label: str, path: str) -> list[ValidationIssue]:
    if not isinstance(pattern, str):
        return [_error(f"{label} must be a string.", path)]
    try:
        re.compile(pattern)
    except re.error as exc:
        return [_error(f"{label} {pattern!r} is not a valid regular expression: {exc}", path)]
    return []


def _check_actions(actions: Mapping[str, Any]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for action_id, detail in actions.items():
        path = f"actions.{action_id}"
        if not isinstance(detail, Mapping):
            issues.append(_error(f'Action "{action_id}" must be an object.', path))
            continue
        for field in _REQUIRED_ACTION_FIELDS:
            if _missing(detail, field):
                issues.append(
                    _error(f'Action "{action_id}" is missing required field "{field}".', path)
                )
    return issues


def _check_tracks(tracks: Mapping[str, Any]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for track_id, track in tracks.items():
        path = f"tracks.{track_id}"
        if not isinstance(track, Mapping):
            issues.append(_error(f'Track "{track_id}" must be an object.', path))
            continue
        missing = [f for f in _REQUIRED_TRACK_FIELDS if _missing(track, f)]
        for field in missing:
            issues.append(
                _error(f'Track "{track_id}" is missing required field "{field}".', path)
            )
        if missing:
            continue
        value, maximum = track["value"], track["max"]
        if not (_is_number(value) and _is_number(maximum)):
            issues.append(_error(f'Track "{track_id}" value and max must be numbers.', path))
        elif maximum < 0:
            issues.append(_error(f'Track "{track_id}" has a negative max.', path))
        elif not 0 <= value <= maximum:
            issues.append(
                _warning(
                    f'Track "{track_id}" starts at {value}, outside [0, {maximum}]; '
                    f"it will be clamped.",
                    path,
                )
            )
    return issues


def _check_initial(initial: Any, ctx: _Context) -> list[ValidationIssue]:
    if not isinstance(initial, Mapping):
        return [_error("'initial' must be an object.", "initial")]

    issues: list[ValidationIssue] = []
    start = initial.get("situation")
    if start is None:
        issues.append(_error('"initial" is missing required field "situation".', "initial"))
    elif not isinstance(start, str):
        issues.append(_error("'initial.situation' must be a string.", "initial.situation"))
    elif start not in ctx.situation_ids:
        issues.append(
            _error(
                f"The initial situation \"{start}\" does not exist in the 'situations' object.",
                "initial.situation",
            )
        )

    counters = initial.get("counters", {})
    if not isinstance(counters, Mapping):
        issues.append(_error("'initial.counters' must be an object.", "initial.counters"))
    else:
        for key, value in counters.items():
            if not isinstance(value, (bool, int, float)) or (
                isinstance(value, float) and not math.isfinite(value)
            ):
                issues.append(
                    _error(
                        f'Counter "{key}" must start as a number or boolean.',
                        f"initial.counters.{key}",
                    )
                )
    return issues


def _check_effect_references(
    key: str, value: Any, ctx: _Context, path: str
) -> list[ValidationIssue]:
    """Check the parameters of a single-key effect against declared names."""
    if key == "give_item":
        if not isinstance(value, Mapping) or value.get("id") is None or value.get("name") is None:
            return [_error("give_item needs an item object with 'id' and 'name'.", path)]
        return []
    if key not in ("add", "set", "track"):
        if not isinstance(value, str):
            return [_error(f"'{key}' must be a string.", path)]
        return []

    if not isinstance(value, str) or "," not in value:
        return [_error(f"'{key}' must look like \"<target>,<value>\" (got {value!r}).", path)]
    target, _, raw = (part.strip() for part in value.partition(","))

    if key == "track":
        issues = []
        if target not in ctx.track_ids:
            issues.append(_error(f'Track effect references unknown track "{target}".', path))
        if not _INT_PARAM_RE.match(raw):
            issues.append(_error(f"Track delta {raw!r} is not an integer.", path))
        return issues

    if key == "set":
        if target == "next_situation":
            if raw not in ctx.situation_ids:
                return [
                    _warning(
                        f'next_situation "{raw}" does not exist; the transition will never happen.',
                        path,
                    )
                ]
            return []
        if target == "route":
            return []

    scope, _, name = target.partition(".")
    if key == "add" and scope == "tracks":
        issues = []
        if name not in ctx.track_ids:
            issues.append(_error(f'Effect references unknown track "{name}".', path))
        if not _INT_PARAM_RE.match(raw):
            issues.append(_error(f"add amount {raw!r} is not an integer.", path))
        return issues
    if scope != "counters":
        return [_error(f"'{key}' cannot target {target!r}.", path)]

    issues = []
    if name not in ctx.counter_ids:
        issues.append(
            _error(f'Effect references unknown counter "{name}" (not in initial.counters).', path)
        )
    if key == "add" and not _INT_PARAM_RE.match(raw):
        issues.append(_error(f"add amount {raw!r} is not an integer.", path))
    if key == "set" and raw.lower() not in ("true", "false"):
        try:
            number = float(raw)
        except ValueError:
            issues.append(_error(f"Counter value {raw!r} is neither a boolean nor a number.", path))
        else:
            if not math.isfinite(number):
                issues.append(_error(f"Counter value {raw!r} is not a finite number.", path))
    return issues


def _check_effect_list(effects: Any, ctx: _Context, path: str) -> list[ValidationIssue]:
    if not isinstance(effects, list):
        return [_error("Effect block must be a list.", path)]

    issues: list[ValidationIssue] = []
    last = len(effects) - 1
    for index, effect in enumerate(effects):
        effect_path = f"{path}[{index}]"
        if not isinstance(effect, Mapping):
            issues.append(_error("Effect must be an object.", effect_path))
            continue

        keys = [k for k in effect if k not in MODIFIER_KEYS]
        for key in keys:
            if key not in EFFECT_KEYS:
                issues.append(_error(f'Unknown effect type "{key}".', effect_path))
        if len(keys) != 1:
            issues.append(
                _error(
                    f"Effect must have exactly one action key besides 'if'/'cap' "
                    f"(found {len(keys)}: {', '.join(keys) or 'none'}).",
                    effect_path,
                )
            )
        elif keys[0] in EFFECT_KEYS:
            issues.extend(_check_effect_references(keys[0], effect[keys[0]], ctx, effect_path))

        if "log" in keys and index != last:
            issues.append(_error("'log' must be the last effect in its list.", effect_path))
        if "if" in effect:
            issues.extend(_check_condition(effect["if"], "Effect guard", effect_path))
        if "cap" in effect and not _is_number(effect["cap"]):
            issues.append(_error("'cap' must be a number.", effect_path))
    return issues


def _check_rule(rule: Any, ctx: _Context, path: str) -> list[ValidationIssue]:
    if not isinstance(rule, Mapping):
        return [_error("Rule must be an object.", path)]
    when = rule.get("when")
    if not isinstance(when, Mapping) or when.get("actionId") is None:
        return [_error("Rule is missing 'when.actionId'.", path)]

    issues: list[ValidationIssue] = []
    action_id = when["actionId"]
    if not isinstance(action_id, str):
        issues.append(_error("'when.actionId' must be a string.", path))
    elif action_id not in ctx.action_ids:
        issues.append(
            _error(
                f'Action ID "{action_id}" is used in a situation but not defined '
                f"in the top-level 'actions' object.",
                path,
            )
        )
    if when.get("targetPattern") is not None:
        issues.extend(_check_regex(when["targetPattern"], "targetPattern", f"{path}.when"))
    if when.get("textRegex") is not None:
        issues.extend(_check_regex(when["textRegex"], "textRegex", f"{path}.when"))
    if when.get("require") is not None:
        issues.extend(_check_condition(when["require"], "require", f"{path}.when"))

    if "do" not in rule:
        issues.append(_error("Rule is missing its 'do' list.", path))
    else:
        issues.extend(_check_effect_list(rule["do"], ctx, f"{path}.do"))
    if rule.get("fail") is not None:
        issues.extend(_check_effect_list(rule["fail"], ctx, f"{path}.fail"))
    return issues


def _check_situation(situation_id: str, situation: Any, ctx: _Context) -> list[ValidationIssue]:
    path = f"situations.{situation_id}"
    if not isinstance(situation, Mapping):
        return [_error(f'Situation "{situation_id}" must be an object.', path)]

    issues: list[ValidationIssue] = []
    if _missing(situation, "label"):
        issues.append(_error(f'Situation "{situation_id}" is missing required field "label".', path))

    allowed = situation.get("allowed_actions") or []
    if not isinstance(allowed, list):
        issues.append(_error("'allowed_actions' must be a list.", f"{path}.allowed_actions"))
        allowed = []
    for action_id in allowed:
        if not isinstance(action_id, str):
            issues.append(
                _error("'allowed_actions' entries must be strings.", f"{path}.allowed_actions")
            )
        elif action_id not in ctx.action_ids:
            issues.append(
                _warning(
                    f'allowed_actions lists "{action_id}", which is not in the top-level \'actions\' object.',
                    f"{path}.allowed_actions",
                )
            )

    if situation.get("auto_enter_if") is not None:
        issues.extend(_check_condition(situation["auto_enter_if"], "auto_enter_if", path))

    rules = situation.get("on_action")
    if not isinstance(rules, list):
        issues.append(
            _error(f'Situation "{situation_id}" needs an "on_action" list.', path)
        )
        return issues
    for index, rule in enumerate(rules):
        issues.extend(_check_rule(rule, ctx, f"{path}.on_action[{index}]"))
    return issues


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _as_document(rules: GameRules | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(rules, GameRules):
        return rules.model_dump(by_alias=True, exclude_none=True)
    return rules


def validate_rules(rules: GameRules | Mapping[str, Any]) -> list[ValidationIssue]:
    """Check a rule document and return every issue found.

    Parameters
    ----------
    rules:
        A loaded :class:`GameRules` or the raw JSON mapping.

    Returns
    -------
    list[ValidationIssue]
        Empty when the document is clean.  When top-level fields are
        missing or malformed only those issues are returned.
    """
    doc = _as_document(rules)
    issues: list[ValidationIssue] = []

    # 1. Top-level shape
    for field in _REQUIRED_TOP_LEVEL:
        if doc.get(field) is None:
            issues.append(_error(f'Missing required top-level field: "{field}".', field))
    for field in ("actions", "tracks", "situations"):
        if doc.get(field) is not None and not isinstance(doc[field], Mapping):
            issues.append(_error(f'Top-level field "{field}" must be an object.', field))
    if issues:
        return issues

    ctx = _Context(doc)

    # 2. At least one ending
    if not any(
        isinstance(s, Mapping) and s.get("ending") is True for s in doc["situations"].values()
    ):
        issues.append(
            _warning("No ending situation found. The game will not be able to conclude.")
        )

    # 3. Sections
    issues.extend(_check_actions(doc["actions"]))
    issues.extend(_check_tracks(doc["tracks"]))
    issues.extend(_check_initial(doc["initial"], ctx))
    for situation_id, situation in doc["situations"].items():
        issues.extend(_check_situation(situation_id, situation, ctx))

    return issues


def has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.severity is Severity.ERROR for issue in issues)
