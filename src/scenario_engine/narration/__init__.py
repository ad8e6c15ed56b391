"""Narration adapter -- Claude API client and prompt rendering for action prose."""

from .client import NarrationClient, TokenUsage
from .narrator import NarrationRequest, Narrator

__all__ = [
    "NarrationClient",
    "NarrationRequest",
    "Narrator",
    "TokenUsage",
]
