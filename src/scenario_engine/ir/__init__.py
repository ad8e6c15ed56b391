"""Intermediate Representation (IR) schema for scenario rule documents.

Rule documents are authored as JSON and loaded into the Pydantic models
below.  :class:`GameRules` is the top-level container handed to the engine
(for play) and the validator (for static checks).
"""

from .effects import (
    EFFECT_KEYS,
    MODIFIER_KEYS,
    NARRATIVE_EFFECTS,
    Effect,
    EffectType,
)
from .items import Item
from .rules import (
    ActionDetail,
    ActionRule,
    GameRules,
    InitialState,
    Situation,
    TrackDefinition,
    TrackStyle,
    Trigger,
    UiHints,
)

__all__ = [
    # effects
    "EFFECT_KEYS",
    "MODIFIER_KEYS",
    "NARRATIVE_EFFECTS",
    "Effect",
    "EffectType",
    # items
    "Item",
    # rules
    "ActionDetail",
    "ActionRule",
    "GameRules",
    "InitialState",
    "Situation",
    "TrackDefinition",
    "TrackStyle",
    "Trigger",
    "UiHints",
]
