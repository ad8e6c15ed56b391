"""Ruleset registry -- loads, serves and saves scenario rule documents.

Bundled scenarios ship as JSON files in ``content/rulesets/``.  Additional
documents can be loaded from any file or directory, and edited documents
can be written back with :meth:`RulesetRegistry.save`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from scenario_engine.ir.rules import GameRules

logger = logging.getLogger(__name__)

_BUNDLED_RULESETS_DIR = Path(__file__).resolve().parent / "rulesets"

# Overrides the directory :meth:`RulesetRegistry.save` writes to.
_RULESETS_DIR_ENV = "SCENARIO_ENGINE_RULESETS"


class RulesetRegistry:
    """Holds every known :class:`GameRules` document, keyed by id.

    Usage::

        registry = RulesetRegistry()
        registry.load_bundled()

        rules = registry.get("eco_pollution")
        registry.list_ids()
    """

    def __init__(self) -> None:
        self.rulesets: dict[str, GameRules] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_file(self, path: str | Path) -> GameRules:
        """Load and register a single rule document.

        Raises
        ------
        pydantic.ValidationError
            If the document does not fit the rule schema.
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        rules = GameRules.model_validate(raw)
        self.register(rules)
        return rules

    def load_directory(self, path: str | Path) -> list[GameRules]:
        """Load every ``*.json`` file in *path* (sorted by file name)."""
        return [self.load_file(p) for p in sorted(Path(path).glob("*.json"))]

    def load_bundled(self) -> list[GameRules]:
        """Load the scenarios that ship with the package."""
        return self.load_directory(_BUNDLED_RULESETS_DIR)

    def register(self, rules: GameRules) -> None:
        if rules.id in self.rulesets:
            logger.info("Replacing ruleset %r", rules.id)
        self.rulesets[rules.id] = rules

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, rules_id: str) -> GameRules:
        """Return the ruleset with the given id.

        Raises
        ------
        KeyError
            If no ruleset with that id has been loaded.
        """
        try:
            return self.rulesets[rules_id]
        except KeyError:
            raise KeyError(
                f"Unknown ruleset {rules_id!r}. Loaded: {self.list_ids()}"
            ) from None

    def list_ids(self) -> list[str]:
        return sorted(self.rulesets)

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def save(
        self,
        rules_id: str,
        rules_json: str,
        directory: str | Path | None = None,
    ) -> Path:
        """Validate *rules_json* and write it to ``<directory>/<rules_id>.json``.

        The document's own ``id`` must equal *rules_id* so that file names
        and ids never drift apart.  The written file is pretty-printed with
        two-space indentation; the parsed rules are registered as well.

        Raises
        ------
        ValueError
            If the ids differ.
        json.JSONDecodeError / pydantic.ValidationError
            If *rules_json* is not a valid rule document.
        """
        raw = json.loads(rules_json)
        if not isinstance(raw, dict):
            raise ValueError("A rule document must be a JSON object.")
        if raw.get("id") != rules_id:
            raise ValueError(
                f"The 'id' in the JSON ({raw.get('id')!r}) does not match "
                f"the file name ({rules_id!r}). Please correct it."
            )
        rules = GameRules.model_validate(raw)

        if directory is None:
            directory = os.environ.get(_RULESETS_DIR_ENV) or _BUNDLED_RULESETS_DIR
        path = Path(directory) / f"{rules_id}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(raw, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

        self.register(rules)
        logger.info("Saved ruleset %r to %s", rules_id, path)
        return path

    def __repr__(self) -> str:
        return f"RulesetRegistry(rulesets={self.list_ids()})"
