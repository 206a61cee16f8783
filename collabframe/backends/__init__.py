"""LLM backends for collabframe."""

from collabframe.backends.anthropic import AnthropicBackend
from collabframe.backends.base import Backend, CompletionRequest

__all__ = ["AnthropicBackend", "Backend", "CompletionRequest"]
