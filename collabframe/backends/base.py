"""Abstract backend interface for LLM inference."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from collabframe.format.types import ParsedReply, Turn


@dataclass
class CompletionRequest:
    """Request for one model round trip."""

    turns: list[Turn]
    model: str
    tools: list[Any] = field(default_factory=list)  # collabframe.tools.Tool
    system: str | None = None
    max_tokens: int = 4000
    temperature: float | None = None


class Backend(ABC):
    """Abstract backend for LLM inference."""

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> ParsedReply:
        """Send the conversation and return the normalized reply.

        Raises:
            BackendError: on transport or provider errors
            MalformedReplyError: if the reply cannot be parsed
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if backend is available."""
        pass
