"""Change lists computed by comparing two state snapshots."""

from __future__ import annotations

from scenario_engine.engine.core.game_state import GameState, LogEntryChange
from scenario_engine.ir.rules import GameRules

_DEFAULT_ICON = "Star"
_DEFAULT_COLOR = "text-primary"


def _counter_icon(rules: GameRules, counter_id: str) -> str:
    if rules.ui is None:
        return _DEFAULT_ICON
    icons = rules.ui.counter_icons
    return icons.get(counter_id) or icons.get("default") or _DEFAULT_ICON


def diff_states(rules: GameRules, before: GameState, after: GameState) -> list[LogEntryChange]:
    """List numeric counter and track deltas between *before* and *after*.

    Boolean counters and keys missing from either snapshot are skipped.
    Counters come first, then tracks, each in *after*'s order.
    """
    changes: list[LogEntryChange] = []

    for counter_id, new_value in after.counters.items():
        old_value = before.counters.get(counter_id)
        if isinstance(new_value, bool) or isinstance(old_value, bool) or old_value is None:
            continue
        if new_value != old_value:
            changes.append(
                LogEntryChange(
                    id=counter_id,
                    name=counter_id.replace("_", " "),
                    delta=new_value - old_value,
                    icon=_counter_icon(rules, counter_id),
                    color=_DEFAULT_COLOR,
                )
            )

    for track_id, track in after.tracks.items():
        old_track = before.tracks.get(track_id)
        if old_track is None or old_track.value == track.value:
            continue
        style = rules.ui.track_styles.get(track_id) if rules.ui is not None else None
        changes.append(
            LogEntryChange(
                id=track_id,
                name=track.name,
                delta=track.value - old_track.value,
                icon=style.icon if style else _DEFAULT_ICON,
                color=style.color if style else _DEFAULT_COLOR,
            )
        )

    return changes
