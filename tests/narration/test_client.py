"""Tests for NarrationClient -- all API calls are mocked."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from scenario_engine.narration.client import NarrationClient, TokenUsage


# =====================================================================
# Helpers
# =====================================================================

def _make_usage(
    *,
    input_tokens: int = 10,
    output_tokens: int = 20,
    cache_creation_input_tokens: int | None = None,
    cache_read_input_tokens: int | None = None,
) -> MagicMock:
    usage = MagicMock()
    usage.input_tokens = input_tokens
    usage.output_tokens = output_tokens
    usage.cache_creation_input_tokens = cache_creation_input_tokens
    usage.cache_read_input_tokens = cache_read_input_tokens
    return usage


def _make_response(*texts: str, **usage_kwargs) -> MagicMock:
    blocks = []
    for text in texts:
        block = MagicMock()
        block.type = "text"
        block.text = text
        blocks.append(block)
    msg = MagicMock()
    msg.content = blocks
    msg.usage = _make_usage(**usage_kwargs)
    return msg


# =====================================================================
# TokenUsage
# =====================================================================

class TestTokenUsage:
    def test_defaults(self):
        usage = TokenUsage()
        assert usage.completions == 0
        assert usage.output_tokens_per_completion == 0.0
        assert usage.total_input_tokens == 0

    def test_total_input_tokens(self):
        usage = TokenUsage(
            input_tokens=100,
            cache_creation_input_tokens=50,
            cache_read_input_tokens=25,
        )
        assert usage.total_input_tokens == 175

    def test_record_treats_missing_cache_counts_as_zero(self):
        usage = TokenUsage()
        usage.record(_make_usage(input_tokens=12, output_tokens=30))
        usage.record(_make_usage(input_tokens=8, output_tokens=10, cache_read_input_tokens=4))

        assert usage.input_tokens == 20
        assert usage.cache_creation_input_tokens == 0
        assert usage.cache_read_input_tokens == 4
        assert usage.total_input_tokens == 24
        assert usage.completions == 2
        assert usage.output_tokens_per_completion == 20.0


# =====================================================================
# NarrationClient
# =====================================================================

class TestNarrationClient:
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError, match="No API key"):
            NarrationClient()

    @patch("scenario_engine.narration.client.anthropic.Anthropic")
    def test_key_from_environment(self, mock_cls, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        NarrationClient()
        mock_cls.assert_called_once_with(api_key="env-key")

    @patch("scenario_engine.narration.client.anthropic.Anthropic")
    def test_complete_returns_text(self, mock_cls):
        mock_cls.return_value.messages.create.return_value = _make_response(
            "The river", "churns."
        )
        client = NarrationClient(api_key="test-key", model="test-model")

        assert client.complete("Describe it") == "The river\nchurns."
        assert client.model == "test-model"

    @patch("scenario_engine.narration.client.anthropic.Anthropic")
    def test_request_arguments(self, mock_cls):
        create = mock_cls.return_value.messages.create
        create.return_value = _make_response("ok")
        client = NarrationClient(
            api_key="test-key",
            model="test-model",
            system_prompt="Be brief.",
            max_tokens=100,
            temperature=0.2,
        )
        client.complete("Prompt")

        create.assert_called_once_with(
            model="test-model",
            max_tokens=100,
            temperature=0.2,
            messages=[{"role": "user", "content": "Prompt"}],
            system="Be brief.",
        )

    @patch("scenario_engine.narration.client.anthropic.Anthropic")
    def test_no_system_prompt_omitted(self, mock_cls):
        create = mock_cls.return_value.messages.create
        create.return_value = _make_response("ok")
        NarrationClient(api_key="test-key").complete("Prompt")
        assert "system" not in create.call_args.kwargs

    @patch("scenario_engine.narration.client.anthropic.Anthropic")
    def test_non_text_blocks_ignored(self, mock_cls):
        response = _make_response("visible")
        other = MagicMock()
        other.type = "thinking"
        response.content.append(other)
        mock_cls.return_value.messages.create.return_value = response

        assert NarrationClient(api_key="test-key").complete("x") == "visible"

    @patch("scenario_engine.narration.client.anthropic.Anthropic")
    def test_usage_accumulates(self, mock_cls):
        mock_cls.return_value.messages.create.side_effect = [
            _make_response("a", input_tokens=10, output_tokens=5, cache_read_input_tokens=3),
            _make_response("b", input_tokens=7, output_tokens=2),
        ]
        client = NarrationClient(api_key="test-key")
        client.complete("one")
        client.complete("two")

        assert client.usage.input_tokens == 17
        assert client.usage.output_tokens == 7
        assert client.usage.cache_read_input_tokens == 3
        assert client.usage.cache_creation_input_tokens == 0
        assert client.usage.completions == 2
        assert client.usage.output_tokens_per_completion == 3.5
