"""Tool registry for collabframe.

The fixed set of capabilities published to the model on every call:
- read_file: see a file
- edit_file: replace a file's content
- list_files: see what is in a directory

The registry is pure data. Execution lives in collabframe.fs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Tool:
    """A tool available to the agent."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema

    @property
    def required(self) -> list[str]:
        return list(self.parameters.get("required", []))

    def to_anthropic_format(self) -> dict[str, Any]:
        """Convert to Anthropic tool format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


# ============================================================================
# Tool Definitions
# ============================================================================

READ_FILE = Tool(
    name="read_file",
    description="Read the current content of a file in the project.",
    parameters={
        "type": "object",
        "properties": {
            "filename": {
                "type": "string",
                "description": "The filename to read, relative to the project root",
            }
        },
        "required": ["filename"],
    },
)

EDIT_FILE = Tool(
    name="edit_file",
    description=(
        "Edit or create a file in the project. The file is overwritten "
        "with exactly the content given."
    ),
    parameters={
        "type": "object",
        "properties": {
            "filename": {
                "type": "string",
                "description": "The filename to edit (e.g., 'style.css', 'index.html')",
            },
            "content": {
                "type": "string",
                "description": "The complete new content for the file",
            },
        },
        "required": ["filename", "content"],
    },
)

LIST_FILES = Tool(
    name="list_files",
    description=(
        "List the files and subdirectories directly inside a directory. "
        "Defaults to the project root."
    ),
    parameters={
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Directory to list, relative to the project root (default '.')",
            }
        },
        "required": [],
    },
)

DEFAULT_TOOLS: tuple[Tool, ...] = (READ_FILE, EDIT_FILE, LIST_FILES)


# ============================================================================
# Tool Registry
# ============================================================================

class ToolRegistry:
    """Read-only lookup over the published tools."""

    def __init__(self, tools: tuple[Tool, ...] | list[Tool] = DEFAULT_TOOLS):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        """Get a specific tool by name."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[Tool]:
        """All tools, in registration order."""
        return list(self._tools.values())

    def missing_arguments(self, name: str, arguments: dict[str, Any]) -> list[str]:
        """Required parameters absent from arguments."""
        tool = self._tools.get(name)
        if tool is None:
            return []
        return [p for p in tool.required if p not in arguments]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
