"""Rule document schema -- the scenario graph a :class:`GameRules` describes.

A rule document is authored as JSON and keeps its original camelCase keys
(``actionId``, ``targetPattern``, ``counterIcons``...).  Every model sets
``populate_by_name`` so Python code can use the snake_case attribute names
as well.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .effects import Effect
from .items import Item

Language = Literal["en", "zh"]


class ActionDetail(BaseModel):
    """Catalog entry for a player verb."""

    label: str
    icon: str
    description: str | None = None


class TrackDefinition(BaseModel):
    """A bounded meter and its starting value."""

    name: str
    value: int
    max: int


class InitialState(BaseModel):
    """Where a new game starts."""

    situation: str
    counters: dict[str, bool | int | float] = Field(default_factory=dict)
    """Every counter the scenario uses.  Effects never create new keys."""

    inventory: list[Item] = Field(default_factory=list)


class Trigger(BaseModel):
    """The ``when`` block of an :class:`ActionRule`."""

    action_id: str = Field(alias="actionId")

    target_pattern: str | None = Field(default=None, alias="targetPattern")
    """Regex the whole target must match (case-insensitive)."""

    text_regex: str | None = Field(default=None, alias="textRegex")
    """Regex searched for anywhere in the target (case-insensitive)."""

    require: str | None = None
    """Guard expression evaluated against the current state."""

    model_config = {"populate_by_name": True}


class ActionRule(BaseModel):
    """One entry of a situation's ``on_action`` list."""

    when: Trigger
    do_: list[Effect] = Field(default_factory=list, alias="do")
    fail: list[Effect] | None = None
    """Applied instead of ``do`` when an external check resolved negatively."""

    model_config = {"populate_by_name": True}

    def effects_for(self, is_success: bool) -> list[Effect] | None:
        return self.do_ if is_success else self.fail


class Situation(BaseModel):
    """A node of the scenario graph."""

    label: str
    description: str | None = None

    allowed_actions: list[str] = Field(default_factory=list)
    """Advisory list of verbs a front-end should offer here."""

    on_action: list[ActionRule] = Field(default_factory=list)

    auto_enter_if: str | None = None
    """Condition that moves the player here automatically."""

    ending: bool = False


class TrackStyle(BaseModel):
    icon: str
    color: str
    progress_color: str | None = Field(default=None, alias="progressColor")

    model_config = {"populate_by_name": True}


class UiHints(BaseModel):
    """Presentation hints; only the change log reads them."""

    counter_icons: dict[str, str] = Field(default_factory=dict, alias="counterIcons")
    track_styles: dict[str, TrackStyle] = Field(default_factory=dict, alias="trackStyles")

    model_config = {"populate_by_name": True}


class GameRules(BaseModel):
    """Top-level rule document for one scenario.

    ``situations`` keeps declaration order, which both rule matching and
    automatic transitions depend on.
    """

    version: int = 1
    """Carried for authoring tools; the engine does not interpret it."""

    id: str
    title: str
    description: str = ""
    language: Language = "en"
    theme: str | None = None

    actions: dict[str, ActionDetail]
    initial: InitialState
    tracks: dict[str, TrackDefinition] = Field(default_factory=dict)
    situations: dict[str, Situation]
    ui: UiHints | None = None

    # -- convenience lookups ------------------------------------------------

    def get_situation(self, situation_id: str | None) -> Situation | None:
        """Return the situation with the given id, or ``None``."""
        if situation_id is None:
            return None
        return self.situations.get(situation_id)

    def action_label(self, action_id: str) -> str:
        detail = self.actions.get(action_id)
        return detail.label if detail is not None else action_id

    def ending_ids(self) -> list[str]:
        return [sid for sid, s in self.situations.items() if s.ending]
