"""Internal representations for conversation content.

A turn's content is either plain text or a list of content blocks. Blocks
form a small tagged variant (text, tool call, tool result) so the
orchestrator never has to poke at provider JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Role(str, Enum):
    """Who authored a turn."""

    HUMAN = "human"
    AGENT = "agent"


@dataclass
class TextBlock:
    """Narrative text."""

    text: str
    type: str = field(default="text", init=False)


@dataclass
class ToolCallBlock:
    """A tool invocation requested by the agent.

    The id is issued by the provider and correlates the call with
    exactly one ToolResultBlock.
    """

    id: str
    name: str
    arguments: dict[str, Any]
    type: str = field(default="tool_call", init=False)


@dataclass
class ToolResultBlock:
    """Outcome of one tool invocation."""

    call_id: str
    content: str
    is_error: bool = False
    type: str = field(default="tool_result", init=False)


ContentBlock = Union[TextBlock, ToolCallBlock, ToolResultBlock]


@dataclass
class Turn:
    """A single message in a conversation."""

    role: Role
    content: str | list[ContentBlock]

    @property
    def blocks(self) -> list[ContentBlock]:
        """Content as a block list (plain text becomes one TextBlock)."""
        if isinstance(self.content, str):
            return [TextBlock(self.content)]
        return list(self.content)

    @property
    def tool_calls(self) -> list[ToolCallBlock]:
        return [b for b in self.blocks if isinstance(b, ToolCallBlock)]

    @property
    def tool_results(self) -> list[ToolResultBlock]:
        return [b for b in self.blocks if isinstance(b, ToolResultBlock)]

    @classmethod
    def human(cls, content: str | list[ContentBlock]) -> Turn:
        return cls(role=Role.HUMAN, content=content)

    @classmethod
    def agent(cls, content: str | list[ContentBlock]) -> Turn:
        return cls(role=Role.AGENT, content=content)


@dataclass
class ParsedReply:
    """A model reply, normalized.

    stop_reason keeps the provider's value ("end_turn", "tool_use",
    "max_tokens", ...) so the orchestrator can tell an explicit tool-use
    stop from a final answer.
    """

    blocks: list[ContentBlock]
    stop_reason: str = "end_turn"
    model: str = ""
    tokens_prompt: int = 0
    tokens_completion: int = 0

    @property
    def tool_calls(self) -> list[ToolCallBlock]:
        return [b for b in self.blocks if isinstance(b, ToolCallBlock)]

    @property
    def text(self) -> str | None:
        """The last text block in the reply, or None if there is none."""
        last = None
        for block in self.blocks:
            if isinstance(block, TextBlock):
                last = block.text
        return last

    @property
    def requested_tool_use(self) -> bool:
        return self.stop_reason == "tool_use" or bool(self.tool_calls)


def block_to_dict(block: ContentBlock) -> dict[str, Any]:
    """Serialize a block for persistence."""
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolCallBlock):
        return {
            "type": "tool_call",
            "id": block.id,
            "name": block.name,
            "arguments": block.arguments,
        }
    if isinstance(block, ToolResultBlock):
        return {
            "type": "tool_result",
            "call_id": block.call_id,
            "content": block.content,
            "is_error": block.is_error,
        }
    raise TypeError(f"Unknown content block: {block!r}")


def block_from_dict(data: dict[str, Any]) -> ContentBlock:
    """Inverse of block_to_dict. Raises ValueError on unknown types."""
    if not isinstance(data, dict):
        raise ValueError(f"Content block is not an object: {data!r}")
    kind = data.get("type")
    if kind == "text":
        return TextBlock(data["text"])
    if kind == "tool_call":
        return ToolCallBlock(
            id=data["id"],
            name=data["name"],
            arguments=dict(data.get("arguments") or {}),
        )
    if kind == "tool_result":
        return ToolResultBlock(
            call_id=data["call_id"],
            content=data.get("content", ""),
            is_error=bool(data.get("is_error", False)),
        )
    raise ValueError(f"Unknown content block type: {kind!r}")


def turn_to_dict(turn: Turn) -> dict[str, Any]:
    content: Any
    if isinstance(turn.content, str):
        content = turn.content
    else:
        content = [block_to_dict(b) for b in turn.content]
    return {"role": turn.role.value, "content": content}


def turn_from_dict(data: dict[str, Any]) -> Turn:
    if not isinstance(data, dict):
        raise ValueError(f"Turn is not an object: {data!r}")
    content = data["content"]
    if not isinstance(content, str):
        content = [block_from_dict(b) for b in content]
    return Turn(role=Role(data["role"]), content=content)
