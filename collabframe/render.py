"""Response finalization for collabframe.

Turns the agent's last narrative into what the browser shows, and packages
it with the side effects of the command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import mistune

DEFAULT_MESSAGE = "Changes applied successfully"

Renderer = Callable[[str], str]

_markdown = mistune.create_markdown(escape=True, plugins=["strikethrough", "table"])


def render_markdown(text: str) -> str:
    """Render markdown (headers, lists, code) to HTML."""
    return str(_markdown(text))


def plain_text(text: str) -> str:
    """Identity renderer."""
    return text


@dataclass
class CommandResult:
    """What the command endpoint returns."""

    success: bool
    message: str | None = None
    changes: list[str] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.message is not None:
            data["message"] = self.message
        if self.changes is not None:
            data["changes"] = self.changes
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ChangeLog:
    """Ordered, human-readable side effects of one command."""

    entries: list[str] = field(default_factory=list)

    def record(self, tool_name: str, arguments: dict[str, Any], success: bool, error: str | None) -> None:
        """Record one tool invocation.

        Successful edits become "Modified <file>"; every failure is recorded
        by its error message. Successful reads and listings change nothing.
        """
        if not success:
            self.entries.append(error or f"Error running {tool_name}")
        elif tool_name == "edit_file":
            self.entries.append(f"Modified {arguments.get('filename')}")


def finalize(
    narrative: str | None,
    changes: list[str],
    renderer: Renderer = render_markdown,
    error: str | None = None,
) -> CommandResult:
    """Render the terminal narrative and attach the change list.

    With an error the result is a failure that still carries whatever
    partial message and changes the command produced.
    """
    message = renderer(narrative if narrative else DEFAULT_MESSAGE)
    return CommandResult(
        success=error is None,
        message=message,
        changes=list(changes),
        error=error,
    )


def failure(error: str) -> CommandResult:
    return CommandResult(success=False, error=error)
