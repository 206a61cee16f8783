"""Orientation prompt for collabframe.

The orientation message opens every model request. It is rebuilt from a
fresh project snapshot before each call, so an edit made by a tool in one
round is visible to the model in the next.
"""

from __future__ import annotations

import logging
from pathlib import Path

from collabframe.format.types import TextBlock, Turn

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_FILES = ("index.html", "style.css", "app.js", "README.md")

ORIENTATION_HEADER = """You are collaborating with a human to build a self-modifying web application. \
The application's files are served by the same process you are talking to, so \
any file you edit is live as soon as the page reloads.

Instructions:
- Use read_file to see a file, list_files to see what exists, and edit_file to change a file
- edit_file replaces the whole file: always send the complete new content
- Make every change the human asked for before you answer
- When you are done, reply with a short summary of what you changed (markdown is fine)"""


def snapshot_project(root: str | Path, context_files: tuple[str, ...] | list[str] = DEFAULT_CONTEXT_FILES) -> dict[str, str]:
    """Read the key project files that currently exist.

    Unreadable files are skipped.
    """
    root = Path(root)
    snapshot: dict[str, str] = {}
    for name in context_files:
        path = root / name
        if not path.is_file():
            continue
        try:
            snapshot[name] = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Skipping %s in project snapshot: %s", name, e)
    return snapshot


def render_snapshot(snapshot: dict[str, str]) -> str:
    if not snapshot:
        return "Current project files: (none of the key files exist yet)"
    sections = [f"=== {name} ===\n{content}" for name, content in snapshot.items()]
    return "Current project files:\n\n" + "\n\n".join(sections)


def build_orientation(snapshot: dict[str, str], tool_names: list[str] | None = None) -> Turn:
    """Build the orientation turn from a project snapshot.

    Pure: the same snapshot always yields the same turn.
    """
    parts = [ORIENTATION_HEADER]
    if tool_names:
        parts.append("Available tools: " + ", ".join(tool_names))
    parts.append(render_snapshot(snapshot))
    return Turn.human([TextBlock("\n\n".join(parts))])


def format_command(command: str) -> str:
    """Wrap the human's command for the conversation."""
    return f'The human has given you this command: "{command}"'
