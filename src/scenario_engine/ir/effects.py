"""Effects -- the single-step state mutations listed in a rule's ``do``/``fail`` block.

An effect is written in JSON as an object with exactly one *action key*
(``add``, ``set``, ``track``, ``log``, ...) plus the optional modifiers
``if`` (a guard expression) and ``cap`` (an upper clamp)::

    {"add": "counters.clues,1", "cap": 2}
    {"set": "next_situation,technical_ops", "if": "counters.samples >= 2"}
    {"log": "Sampling stirred up the sediment."}
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from .items import Item


class EffectType(str, Enum):
    """Action keys understood by the effect interpreter."""

    ADD = "add"
    SET = "set"
    TRACK = "track"
    LOG = "log"
    SECRET = "secret"
    AGREEMENT = "agreement"
    GIVE_ITEM = "give_item"
    REMOVE_ITEM = "remove_item"
    ADD_KNOWN_TARGET = "addKnownTarget"


# Keys that modify an effect rather than name it.
MODIFIER_KEYS: frozenset[str] = frozenset({"if", "cap"})

EFFECT_KEYS: frozenset[str] = frozenset(t.value for t in EffectType)

# Narrative cues; dropped when effects run outside normal dialogue flow.
NARRATIVE_EFFECTS: frozenset[EffectType] = frozenset(
    {EffectType.LOG, EffectType.SECRET, EffectType.AGREEMENT}
)


class Effect(BaseModel):
    """One entry of a ``do`` or ``fail`` list.

    Unknown keys are kept (``extra="allow"``) so the validator can report
    them; the interpreter ignores effects whose action key it does not
    recognise.
    """

    add: str | None = None
    """``"counters.<key>,<int>"`` or ``"tracks.<id>,<int>"``."""

    set_: str | None = Field(default=None, alias="set")
    """``"counters.<key>,<literal>"``, ``"route,<value>"`` or
    ``"next_situation,<situation id>"``."""

    track: str | None = None
    """``"<track id>,<signed int>"``."""

    log: str | None = None
    secret: str | None = None
    agreement: str | None = None
    give_item: Item | None = None
    remove_item: str | None = None
    add_known_target: str | None = Field(default=None, alias="addKnownTarget")

    if_: str | None = Field(default=None, alias="if")
    """Guard expression; when false only this effect is skipped."""

    cap: int | float | None = None
    """Upper clamp applied to the resulting numeric value."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    _key_order: list[str] = PrivateAttr(default_factory=list)

    @model_validator(mode="wrap")
    @classmethod
    def _remember_key_order(cls, data: Any, handler: Any) -> "Effect":
        effect = handler(data)
        if isinstance(data, dict):
            aliases = {
                name: field.alias or name for name, field in cls.model_fields.items()
            }
            effect._key_order = [aliases.get(key, key) for key in data]
        return effect

    # -- accessors ----------------------------------------------------------

    def present_keys(self) -> list[str]:
        """JSON keys carrying a value, in the order they were written."""
        keys = [
            field.alias or name
            for name, field in type(self).model_fields.items()
            if getattr(self, name) is not None
        ]
        keys.extend(self.model_extra or {})
        position = {key: i for i, key in enumerate(self._key_order)}
        return sorted(keys, key=lambda k: position.get(k, len(position)))

    def action_keys(self) -> list[str]:
        """Present keys other than the ``if``/``cap`` modifiers."""
        return [k for k in self.present_keys() if k not in MODIFIER_KEYS]

    @property
    def kind(self) -> EffectType | None:
        """The effect's action type.

        A well-formed effect has exactly one action key.  When several are
        present the last one written wins; an unrecognised last key yields
        ``None``.
        """
        keys = self.action_keys()
        if not keys or keys[-1] not in EFFECT_KEYS:
            return None
        return EffectType(keys[-1])

    @property
    def payload(self) -> Any:
        """Value stored under the action key returned by :attr:`kind`."""
        kind = self.kind
        if kind is None:
            return None
        for name, field in type(self).model_fields.items():
            if (field.alias or name) == kind.value:
                return getattr(self, name)
        return None

    @property
    def guard(self) -> str | None:
        return self.if_
