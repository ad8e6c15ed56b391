"""Scenario content: bundled rule documents and the registry that serves them."""

from scenario_engine.content.registry import RulesetRegistry

__all__ = ["RulesetRegistry"]
