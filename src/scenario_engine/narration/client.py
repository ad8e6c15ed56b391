"""Claude API client for narration -- single-turn text completion.

Wraps the Anthropic SDK to provide:
- One-shot prompt -> text completion
- Cumulative token usage tracking
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import anthropic


@dataclass
class TokenUsage:
    """Tokens spent by one :class:`NarrationClient` across its completions.

    A game session narrates every player action with a separate completion,
    so ``completions`` doubles as the number of narrated turns.  Cache
    counters stay at zero unless a system prompt is cached on the API side.
    """

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    completions: int = 0

    @property
    def total_input_tokens(self) -> int:
        return (
            self.input_tokens
            + self.cache_creation_input_tokens
            + self.cache_read_input_tokens
        )

    @property
    def output_tokens_per_completion(self) -> float:
        """Average narration length in tokens; ``0.0`` before the first call."""
        if not self.completions:
            return 0.0
        return self.output_tokens / self.completions

    def record(self, usage: Any) -> None:
        """Add the ``usage`` block of one Messages API response."""
        self.input_tokens += usage.input_tokens
        self.output_tokens += usage.output_tokens
        self.cache_creation_input_tokens += usage.cache_creation_input_tokens or 0
        self.cache_read_input_tokens += usage.cache_read_input_tokens or 0
        self.completions += 1


class NarrationClient:
    """Thin wrapper around ``anthropic.Anthropic`` for prose generation.

    Every call is independent: narration prompts carry all the context the
    model needs, so no conversation history is kept.

    Parameters
    ----------
    model:
        Anthropic model ID.
    system_prompt:
        Optional system prompt sent with every call.
    max_tokens:
        Maximum tokens per response.
    temperature:
        Sampling temperature.  Narration benefits from some variety.
    api_key:
        Anthropic API key.  Falls back to ``ANTHROPIC_API_KEY`` env var.
    """

    def __init__(
        self,
        *,
        model: str = "claude-sonnet-4-20250514",
        system_prompt: str = "",
        max_tokens: int = 512,
        temperature: float = 0.8,
        api_key: str | None = None,
    ) -> None:
        resolved_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not resolved_key:
            raise ValueError(
                "No API key provided. Pass api_key= or set ANTHROPIC_API_KEY."
            )

        self._client = anthropic.Anthropic(api_key=resolved_key)
        self._model = model
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._usage = TokenUsage()

    @property
    def model(self) -> str:
        return self._model

    @property
    def usage(self) -> TokenUsage:
        """Token usage accumulated by :meth:`complete` so far."""
        return self._usage

    def complete(self, prompt: str) -> str:
        """Send *prompt* as a single user message and return the text reply."""
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self._system_prompt:
            kwargs["system"] = self._system_prompt

        response = self._client.messages.create(**kwargs)
        self._usage.record(response.usage)

        text_parts = [block.text for block in response.content if block.type == "text"]
        return "\n".join(text_parts)
