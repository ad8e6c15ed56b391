"""Mutable save-state for one play-through of a scenario.

``GameState`` is plain structured data: it serialises to a JSON document
for save files and reloads into an equivalent value.  The engine never
mutates a state it was handed; it works on a deep copy and returns that.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from scenario_engine.ir.items import Item
from scenario_engine.ir.rules import GameRules, Language


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------

class PlayerAttributes(BaseModel):
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10


class Equipment(BaseModel):
    top: str | None = None
    bottom: str | None = None
    underwear: str | None = None
    panties: str | None = None
    shoes: str | None = None
    socks: str | None = None
    accessory: str | None = None


class AttributeChange(BaseModel):
    attribute: str
    change: int
    old_value: int = Field(alias="oldValue")
    new_value: int = Field(alias="newValue")

    model_config = {"populate_by_name": True}


class CompletedScenario(BaseModel):
    """History record written when the player reaches an ending."""

    rules_id: str = Field(alias="rulesId")
    title: str
    completion_date: str = Field(alias="completionDate")
    """ISO-8601 timestamp (UTC)."""

    ending_situation_id: str = Field(alias="endingSituationId")
    ending_situation_label: str = Field(alias="endingSituationLabel")
    attribute_changes: list[AttributeChange] = Field(
        default_factory=list, alias="attributeChanges"
    )
    final_attributes: PlayerAttributes = Field(alias="finalAttributes")

    model_config = {"populate_by_name": True}


class PlayerStats(BaseModel):
    name: str = "Player"
    identity: str = "An adventurer"
    language: Language = "en"
    attributes: PlayerAttributes = Field(default_factory=PlayerAttributes)
    equipment: Equipment = Field(default_factory=Equipment)
    inventory: list[Item] = Field(default_factory=list)
    history: list[CompletedScenario] = Field(default_factory=list)

    def has_item(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self.inventory)


# ---------------------------------------------------------------------------
# Tracks and log
# ---------------------------------------------------------------------------

class Track(BaseModel):
    """A bounded meter.  ``value`` is kept within ``[0, max]``."""

    name: str
    value: int | float
    max: int | float

    def clamp(self, value: int | float) -> int | float:
        return max(0, min(value, self.max))


LogEntryType = Literal["action", "procedural", "narrative", "error", "player", "npc"]


class LogEntryChange(BaseModel):
    """One counter or track delta shown next to a log line."""

    id: str
    name: str
    delta: int | float
    icon: str
    color: str


class LogEntry(BaseModel):
    id: int
    type: LogEntryType
    message: str
    actor: str | None = None
    """Speaker, for conversation entries."""

    changes: list[LogEntryChange] | None = None


# ---------------------------------------------------------------------------
# GameState
# ---------------------------------------------------------------------------

class GameState(BaseModel):
    """Full save-state of a running scenario."""

    situation: str
    """Id of the current situation."""

    counters: dict[str, bool | int | float] = Field(default_factory=dict)
    tracks: dict[str, Track] = Field(default_factory=dict)
    log: list[LogEntry] = Field(default_factory=list)

    route: str | None = None
    """Free-form branch tag set by ``set: "route,<value>"``."""

    next_situation: str | None = None
    """Pending manual transition, cleared once consumed."""

    player: PlayerStats = Field(default_factory=PlayerStats)

    player_baseline: PlayerAttributes | None = Field(default=None, alias="playerBaseline")
    """Player attributes when the scenario started."""

    known_targets: list[str] = Field(default_factory=list, alias="knownTargets")
    scene_descriptions: dict[str, str] = Field(
        default_factory=dict, alias="sceneDescriptions"
    )

    model_config = {"populate_by_name": True}

    def next_log_id(self) -> int:
        """Id for the next log entry appended to this state."""
        return max((entry.id for entry in self.log), default=0) + 1

    # -- persistence ----------------------------------------------------------

    def to_json(self, *, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, data: str | bytes) -> "GameState":
        return cls.model_validate_json(data)


def new_game_state(rules: GameRules, player: PlayerStats | None = None) -> GameState:
    """Build the starting state for *rules*.

    Counters are copied from ``rules.initial``, tracks from ``rules.tracks``
    (clamped into range), and the initial inventory is merged into the
    player's inventory without duplicating item ids.
    """
    player = player.model_copy(deep=True) if player is not None else PlayerStats(
        language=rules.language
    )
    for item in rules.initial.inventory:
        if not player.has_item(item.id):
            player.inventory.append(item.model_copy(deep=True))

    tracks: dict[str, Track] = {}
    for track_id, definition in rules.tracks.items():
        track = Track(name=definition.name, value=definition.value, max=definition.max)
        track.value = track.clamp(track.value)
        tracks[track_id] = track

    return GameState(
        situation=rules.initial.situation,
        counters=dict(rules.initial.counters),
        tracks=tracks,
        player=player,
        player_baseline=player.attributes.model_copy(),
    )
