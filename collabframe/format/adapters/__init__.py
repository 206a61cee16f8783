"""Provider format adapters."""

from collabframe.format.adapters.anthropic import (
    AnthropicDefinitionAdapter,
    AnthropicMessageAdapter,
    AnthropicReplyParser,
)

__all__ = [
    "AnthropicDefinitionAdapter",
    "AnthropicMessageAdapter",
    "AnthropicReplyParser",
]
