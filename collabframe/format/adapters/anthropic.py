"""Anthropic Messages API format adapters."""

from __future__ import annotations

from typing import Any

from collabframe.errors import MalformedReplyError
from collabframe.format.types import (
    ContentBlock,
    ParsedReply,
    Role,
    TextBlock,
    ToolCallBlock,
    ToolResultBlock,
    Turn,
)

WIRE_ROLES = {Role.HUMAN: "user", Role.AGENT: "assistant"}


class AnthropicDefinitionAdapter:
    """Formats tool definitions for the Anthropic API."""

    def format_tools(self, tools: list) -> list[dict[str, Any]]:
        """Convert internal Tool objects to Anthropic format.

        Args:
            tools: List of Tool objects (from collabframe.tools) or dicts

        Returns:
            List of {name, description, input_schema} entries
        """
        result = []
        for tool in tools:
            if hasattr(tool, "to_anthropic_format"):
                result.append(tool.to_anthropic_format())
            elif isinstance(tool, dict):
                result.append({
                    "name": tool.get("name", ""),
                    "description": tool.get("description", ""),
                    "input_schema": tool.get("input_schema")
                    or tool.get("parameters")
                    or {"type": "object", "properties": {}},
                })
        return result


class AnthropicMessageAdapter:
    """Formats turns as Anthropic messages.

    Consecutive turns with the same role are merged into one message, so
    an orientation turn followed by a human command goes out as a single
    user message. Within a merged user message tool results are moved
    ahead of text, as the API requires.
    """

    def format_block(self, block: ContentBlock) -> dict[str, Any]:
        if isinstance(block, TextBlock):
            return {"type": "text", "text": block.text}
        if isinstance(block, ToolCallBlock):
            return {
                "type": "tool_use",
                "id": block.id,
                "name": block.name,
                "input": block.arguments,
            }
        if isinstance(block, ToolResultBlock):
            payload: dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": block.call_id,
                "content": block.content,
            }
            if block.is_error:
                payload["is_error"] = True
            return payload
        raise TypeError(f"Unknown content block: {block!r}")

    def format_messages(self, turns: list[Turn]) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        for turn in turns:
            role = WIRE_ROLES[turn.role]
            blocks = [self.format_block(b) for b in turn.blocks]
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"].extend(blocks)
            else:
                messages.append({"role": role, "content": blocks})

        for message in messages:
            if message["role"] == "user":
                message["content"].sort(key=lambda b: b["type"] != "tool_result")
        return messages


class AnthropicReplyParser:
    """Parses an Anthropic Messages API response body."""

    def can_parse(self, response: Any) -> bool:
        return isinstance(response, dict) and isinstance(response.get("content"), list)

    def parse(self, response: Any) -> ParsedReply:
        """Extract text and tool_use blocks.

        Raises:
            MalformedReplyError: if the body is not a messages response
        """
        if not self.can_parse(response):
            raise MalformedReplyError("Model reply has no content list")

        blocks: list[ContentBlock] = []
        for raw in response["content"]:
            if not isinstance(raw, dict):
                raise MalformedReplyError(f"Unexpected content block: {raw!r}")
            kind = raw.get("type")
            if kind == "text":
                blocks.append(TextBlock(str(raw.get("text", ""))))
            elif kind == "tool_use":
                call_id = raw.get("id")
                name = raw.get("name")
                arguments = raw.get("input", {})
                if not call_id or not name or not isinstance(arguments, dict):
                    raise MalformedReplyError(f"Incomplete tool_use block: {raw!r}")
                blocks.append(ToolCallBlock(id=call_id, name=name, arguments=arguments))
            # thinking and other block kinds carry nothing the loop acts on

        usage = response.get("usage") or {}
        return ParsedReply(
            blocks=blocks,
            stop_reason=response.get("stop_reason") or "end_turn",
            model=response.get("model", ""),
            tokens_prompt=usage.get("input_tokens", 0),
            tokens_completion=usage.get("output_tokens", 0),
        )
