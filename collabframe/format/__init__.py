"""Conversation content model and provider format translation.

Usage:
    from collabframe.format import Turn, TextBlock, AnthropicReplyParser

    parsed = AnthropicReplyParser().parse(response_json)
    for call in parsed.tool_calls:
        result = executor.execute(call.name, call.arguments)
"""

from collabframe.format.adapters import (
    AnthropicDefinitionAdapter,
    AnthropicMessageAdapter,
    AnthropicReplyParser,
)
from collabframe.format.types import (
    ContentBlock,
    ParsedReply,
    Role,
    TextBlock,
    ToolCallBlock,
    ToolResultBlock,
    Turn,
)

__all__ = [
    "AnthropicDefinitionAdapter",
    "AnthropicMessageAdapter",
    "AnthropicReplyParser",
    "ContentBlock",
    "ParsedReply",
    "Role",
    "TextBlock",
    "ToolCallBlock",
    "ToolResultBlock",
    "Turn",
]
