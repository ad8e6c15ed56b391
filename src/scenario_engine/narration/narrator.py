"""Narrator -- turns an engine result into prose via the narration client.

The engine hands over structured facts (situation, action, procedural log
lines, known targets); the narrator renders a language-specific prompt
and returns whatever text the model produces.  The engine has no opinion
on that text.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from pydantic import BaseModel, Field

from scenario_engine.engine.core.game_state import GameState
from scenario_engine.engine.processor import ActionResult
from scenario_engine.ir.rules import GameRules, Language

_TEMPLATE_DIR = Path(__file__).parent / "templates"


class NarrationRequest(BaseModel):
    """Structured facts describing one processed action."""

    language: Language = "en"
    situation_label: str
    scene_description: str = ""
    action_taken: str
    procedural_logs: list[str] = Field(default_factory=list)
    known_targets: list[str] = Field(default_factory=list)


class CompletionClient(Protocol):
    def complete(self, prompt: str) -> str: ...


class Narrator:
    """Renders narration prompts and asks a completion client for prose.

    Parameters
    ----------
    client:
        Anything with a ``complete(prompt) -> str`` method, normally a
        :class:`~scenario_engine.narration.client.NarrationClient`.
    template_dir:
        Directory holding ``action_narrative.<language>.j2`` templates.
    """

    def __init__(self, client: CompletionClient, *, template_dir: Path | None = None) -> None:
        self._client = client
        self._jinja = Environment(
            loader=FileSystemLoader(str(template_dir or _TEMPLATE_DIR)),
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render_prompt(self, request: NarrationRequest) -> str:
        template = self._jinja.get_template(f"action_narrative.{request.language}.j2")
        return template.render(**request.model_dump(exclude={"language"}))

    def narrate(self, request: NarrationRequest) -> str:
        """Return the model's narrative for *request*, stripped."""
        return self._client.complete(self.render_prompt(request)).strip()

    @staticmethod
    def request_for(
        rules: GameRules,
        before: GameState,
        result: ActionResult,
        action_id: str,
        target: str | None = None,
    ) -> NarrationRequest:
        """Build a request describing *result*.

        The situation and scene are those the action was taken in; known
        targets come from the post-action state so newly discovered ones
        can be hinted at.
        """
        situation = rules.get_situation(before.situation)
        label = situation.label if situation is not None else before.situation
        scene = before.scene_descriptions.get(before.situation)
        if scene is None and situation is not None:
            scene = situation.description
        action_taken = rules.action_label(action_id)
        if target:
            action_taken = f"{action_taken} {target}"
        return NarrationRequest(
            language=rules.language,
            situation_label=label,
            scene_description=scene or "",
            action_taken=action_taken,
            procedural_logs=[entry.message for entry in result.procedural_logs],
            known_targets=list(result.new_state.known_targets),
        )
