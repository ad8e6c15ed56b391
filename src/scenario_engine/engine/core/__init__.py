"""Core state primitives for the scenario engine."""

from scenario_engine.engine.core.game_state import (
    AttributeChange,
    CompletedScenario,
    Equipment,
    GameState,
    LogEntry,
    LogEntryChange,
    PlayerAttributes,
    PlayerStats,
    Track,
    new_game_state,
)

__all__ = [
    "AttributeChange",
    "CompletedScenario",
    "Equipment",
    "GameState",
    "LogEntry",
    "LogEntryChange",
    "PlayerAttributes",
    "PlayerStats",
    "Track",
    "new_game_state",
]
