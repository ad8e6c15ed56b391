"""Effect interpreter -- bridge between rule effects and the game state.

Reads :class:`Effect` lists from the IR and dispatches each one to a
handler that mutates a *draft* :class:`GameState`.  The draft is always a
private copy owned by the caller (see :func:`process_action`); nothing in
here copies state.

Usage::

    from scenario_engine.engine.interpreter import EffectInterpreter

    interp = EffectInterpreter()
    messages: list[str] = []
    interp.apply_effects(rule.do_, draft, messages)

Counters and tracks form a closed schema: effects only touch keys that
already exist in the state and never create new ones.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from scenario_engine.engine.conditions import evaluate
from scenario_engine.engine.core.game_state import GameState
from scenario_engine.ir.effects import NARRATIVE_EFFECTS, Effect, EffectType
from scenario_engine.ir.items import Item

logger = logging.getLogger(__name__)


def _split_param(raw: object) -> tuple[str, str] | None:
    """Split ``"<path>,<value>"`` on the first comma."""
    if not isinstance(raw, str):
        return None
    path, sep, value = raw.partition(",")
    if not sep:
        return None
    return path.strip(), value.strip()


def _parse_int(raw: str) -> int | None:
    try:
        return int(raw)
    except ValueError:
        return None


def _parse_counter_literal(raw: str) -> bool | int | float | None:
    """``true``/``false`` become booleans, anything else must be a finite number."""
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        value = float(raw)
    except ValueError:
        return None
    # nan/inf cannot be written to a save file
    return value if math.isfinite(value) else None


class EffectInterpreter:
    """Walks an effect list and dispatches each effect by its action key.

    The interpreter is stateless between calls -- all mutable state lives in
    the draft ``GameState`` threaded through every call, and procedural log
    lines go to the caller's *log_sink*.
    """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def apply_effects(
        self,
        effects: list[Effect],
        draft: GameState,
        log_sink: list[str],
        *,
        narrative: bool = True,
    ) -> None:
        """Apply *effects* in order.

        Parameters
        ----------
        effects:
            Ordered effect list (a rule's ``do`` or ``fail`` block).
        draft:
            State to mutate in place.  Guards of later effects see the
            changes made by earlier ones.
        log_sink:
            Receives the text of every ``log``/``secret``/``agreement``
            effect that runs.
        narrative:
            When ``False`` the narrative-only variants are suppressed.
        """
        for effect in effects:
            self.apply_effect(effect, draft, log_sink, narrative=narrative)

    def apply_effect(
        self,
        effect: Effect,
        draft: GameState,
        log_sink: list[str],
        *,
        narrative: bool = True,
    ) -> None:
        """Apply a single effect, honouring its ``if`` guard."""
        if effect.guard and not evaluate(effect.guard, draft):
            return

        kind = effect.kind
        if kind is None:
            logger.warning("Effect has no recognised action key: %s", effect.action_keys())
            return

        if kind in NARRATIVE_EFFECTS and not narrative:
            logger.debug("Suppressed %s effect outside dialogue flow", kind.value)
            return

        handler = _DISPATCH[kind]
        handler(self, effect, draft, log_sink)

    # ------------------------------------------------------------------
    # Effect handlers (one per EffectType)
    # ------------------------------------------------------------------

    def _handle_add(self, effect: Effect, draft: GameState, log_sink: list[str]) -> None:
        parsed = _split_param(effect.add)
        delta = _parse_int(parsed[1]) if parsed else None
        if parsed is None or delta is None:
            logger.warning("Malformed add effect %r", effect.add)
            return
        scope, _, key = parsed[0].partition(".")

        if scope == "counters":
            current = draft.counters.get(key)
            if key not in draft.counters or isinstance(current, bool):
                logger.debug("add ignored: counters.%s is not a numeric counter", key)
                return
            value = current + delta
            if effect.cap is not None and value > effect.cap:
                value = effect.cap
            draft.counters[key] = value
        elif scope == "tracks":
            self._shift_track(draft, key, delta, effect.cap)
        else:
            logger.warning("add effect targets unsupported path %r", parsed[0])

    def _handle_set(self, effect: Effect, draft: GameState, log_sink: list[str]) -> None:
        parsed = _split_param(effect.set_)
        if parsed is None:
            logger.warning("Malformed set effect %r", effect.set_)
            return
        path, raw_value = parsed

        if path == "next_situation":
            draft.next_situation = raw_value
            return
        if path == "route":
            draft.route = raw_value
            return

        scope, _, key = path.partition(".")
        if scope != "counters":
            logger.warning("set effect targets unsupported path %r", path)
            return
        if key not in draft.counters:
            logger.debug("set ignored: unknown counter %r", key)
            return
        value = _parse_counter_literal(raw_value)
        if value is None:
            logger.warning("set effect value %r for counters.%s is not a boolean or finite number", raw_value, key)
            return
        if effect.cap is not None and not isinstance(value, bool) and value > effect.cap:
            value = effect.cap
        draft.counters[key] = value

    def _handle_track(self, effect: Effect, draft: GameState, log_sink: list[str]) -> None:
        parsed = _split_param(effect.track)
        delta = _parse_int(parsed[1]) if parsed else None
        if parsed is None or delta is None:
            logger.warning("Malformed track effect %r", effect.track)
            return
        self._shift_track(draft, parsed[0], delta, effect.cap)

    def _handle_log(self, effect: Effect, draft: GameState, log_sink: list[str]) -> None:
        log_sink.append(str(effect.payload))

    def _handle_give_item(self, effect: Effect, draft: GameState, log_sink: list[str]) -> None:
        item: Item = effect.give_item
        if not draft.player.has_item(item.id):
            draft.player.inventory.append(item.model_copy(deep=True))

    def _handle_remove_item(self, effect: Effect, draft: GameState, log_sink: list[str]) -> None:
        draft.player.inventory = [
            item for item in draft.player.inventory if item.id != effect.remove_item
        ]

    def _handle_add_known_target(
        self, effect: Effect, draft: GameState, log_sink: list[str]
    ) -> None:
        if effect.add_known_target not in draft.known_targets:
            draft.known_targets.append(effect.add_known_target)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _shift_track(
        draft: GameState, track_id: str, delta: int, cap: int | float | None
    ) -> None:
        track = draft.tracks.get(track_id)
        if track is None:
            logger.debug("Track change ignored: unknown track %r", track_id)
            return
        value = track.value + delta
        if cap is not None and value > cap:
            value = cap
        track.value = track.clamp(value)


# ------------------------------------------------------------------
# Dispatch table -- maps EffectType -> handler method
# ------------------------------------------------------------------

_DISPATCH: dict[EffectType, Callable[..., None]] = {
    EffectType.ADD: EffectInterpreter._handle_add,
    EffectType.SET: EffectInterpreter._handle_set,
    EffectType.TRACK: EffectInterpreter._handle_track,
    EffectType.LOG: EffectInterpreter._handle_log,
    EffectType.SECRET: EffectInterpreter._handle_log,
    EffectType.AGREEMENT: EffectInterpreter._handle_log,
    EffectType.GIVE_ITEM: EffectInterpreter._handle_give_item,
    EffectType.REMOVE_ITEM: EffectInterpreter._handle_remove_item,
    EffectType.ADD_KNOWN_TARGET: EffectInterpreter._handle_add_known_target,
}
