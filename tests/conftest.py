"""Shared fixtures for scenario engine tests."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from scenario_engine.content import RulesetRegistry
from scenario_engine.engine.core.game_state import GameState, new_game_state
from scenario_engine.ir.rules import GameRules


@pytest.fixture(scope="session")
def registry() -> RulesetRegistry:
    """Session-scoped registry with the bundled scenarios loaded once."""
    reg = RulesetRegistry()
    reg.load_bundled()
    return reg


@pytest.fixture
def eco_rules(registry: RulesetRegistry) -> GameRules:
    return registry.get("eco_pollution")


@pytest.fixture
def eco_state(eco_rules: GameRules) -> GameState:
    return new_game_state(eco_rules)


def _base_document() -> dict[str, Any]:
    return {
        "id": "test_rules",
        "title": "Test Rules",
        "language": "en",
        "actions": {
            "look": {"label": "Look", "icon": "Eye"},
            "poke": {"label": "Poke", "icon": "Hand"},
            "wait": {"label": "Wait", "icon": "Clock"},
        },
        "initial": {
            "situation": "start",
            "counters": {"hits": 0, "flag": False},
        },
        "tracks": {
            "meter": {"name": "Meter", "value": 2, "max": 5},
        },
        "situations": {
            "start": {"label": "Start", "allowed_actions": ["look", "poke"], "on_action": []},
            "middle": {"label": "Middle", "on_action": []},
            "end": {"label": "End", "ending": True, "on_action": []},
        },
    }


@pytest.fixture
def rules_doc() -> dict[str, Any]:
    """A small, valid rule document as a raw mapping."""
    return _base_document()


@pytest.fixture
def make_rules() -> Callable[..., GameRules]:
    """Build a small :class:`GameRules`, replacing parts of the base document.

    ``make_rules(start_rules=[...])`` sets the ``on_action`` list of the
    ``start`` situation; any other keyword replaces a top-level field.
    """

    def _make(start_rules: list[dict[str, Any]] | None = None, **overrides: Any) -> GameRules:
        doc = _base_document()
        if start_rules is not None:
            doc["situations"]["start"]["on_action"] = start_rules
        doc.update(overrides)
        return GameRules.model_validate(doc)

    return _make
