"""
Filesystem tool executor for collabframe.

Runs one tool invocation against the project directory and reports an
FsResult. Failures are returned, not raised: the orchestrator feeds them
back to the model as error-flagged tool results.

Paths from the model are joined to the project root as given. There is no
traversal or symlink checking here; the agent is meant to edit the
application that hosts it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import time
from typing import Any

from collabframe.tools import ToolRegistry

logger = logging.getLogger(__name__)

# Error kinds
NOT_FOUND = "NotFound"
IO_ERROR = "IOError"
UNKNOWN_TOOL = "UnknownTool"
INVALID_ARGUMENTS = "InvalidArguments"


@dataclass
class FsResult:
    """Result from filesystem operation."""

    success: bool
    data: Any
    meta: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    kind: str | None = None

    @property
    def content(self) -> str:
        """Text handed back to the model."""
        if not self.success:
            return self.error or "Unknown error"
        if isinstance(self.data, str):
            return self.data
        return json.dumps(self.data)


def _fail(kind: str, message: str, path: Path | str | None = None) -> FsResult:
    meta = {"path": str(path)} if path is not None else {}
    return FsResult(success=False, data=None, meta=meta, error=message, kind=kind)


def read_file(root: Path, filename: str, encoding: str = "utf-8") -> FsResult:
    """
    Read file contents.

    Args:
        root: Project root
        filename: Path relative to root
        encoding: Text encoding (undecodable bytes are replaced)

    Returns:
        FsResult with the full file text or error
    """
    path = root / filename
    try:
        if not path.exists():
            return _fail(NOT_FOUND, f"Error reading {filename}: file not found", path)
        if not path.is_file():
            return _fail(IO_ERROR, f"Error reading {filename}: not a file", path)

        raw = path.read_bytes()
        try:
            content = raw.decode(encoding)
        except UnicodeDecodeError:
            content = raw.decode(encoding, errors="replace")

        return FsResult(
            success=True,
            data=content,
            meta={"path": str(path), "size": len(raw)},
        )
    except (OSError, ValueError) as e:
        return _fail(IO_ERROR, f"Error reading {filename}: {e}", path)


def edit_file(root: Path, filename: str, content: str, encoding: str = "utf-8") -> FsResult:
    """
    Overwrite a file with content, creating the file if needed.

    Missing parent directories are not created.
    """
    path = root / filename
    try:
        # newline="" keeps the content byte-for-byte as given
        with open(path, "w", encoding=encoding, newline="") as f:
            f.write(content)
        return FsResult(
            success=True,
            data=f"Successfully modified {filename}",
            meta={"path": str(path), "bytes_written": len(content.encode(encoding))},
        )
    except (OSError, ValueError) as e:
        return _fail(IO_ERROR, f"Error modifying {filename}: {e}", path)


def list_files(root: Path, path: str | None = None) -> FsResult:
    """
    List the immediate children of a directory.

    Each entry has name, type ("file" or "directory") and size in bytes
    (None for directories).
    """
    rel = path or "."
    target = root / rel
    try:
        if not target.exists():
            return _fail(IO_ERROR, f"Error listing {rel}: directory not found", target)
        if not target.is_dir():
            return _fail(IO_ERROR, f"Error listing {rel}: not a directory", target)

        entries: list[dict[str, Any]] = []
        for entry in sorted(target.iterdir(), key=lambda p: p.name):
            is_dir = entry.is_dir()
            try:
                size = None if is_dir else entry.stat().st_size
            except OSError:
                size = None
            entries.append(
                {
                    "name": entry.name,
                    "type": "directory" if is_dir else "file",
                    "size": size,
                }
            )

        return FsResult(
            success=True,
            data=entries,
            meta={"path": str(target), "total_entries": len(entries)},
        )
    except (OSError, ValueError) as e:
        return _fail(IO_ERROR, f"Error listing {rel}: {e}", target)


class FileToolExecutor:
    """Dispatches tool invocations to the filesystem functions above."""

    def __init__(self, root: str | Path, registry: ToolRegistry | None = None):
        self.root = Path(root)
        self.registry = registry or ToolRegistry()

    def execute(self, tool_name: str, args: dict[str, Any]) -> FsResult:
        """Execute one tool invocation."""
        start = time.perf_counter()
        result = self._dispatch(tool_name, args)
        latency_ms = (time.perf_counter() - start) * 1000

        if result.success:
            logger.info(
                "✓ %s %s",
                tool_name,
                result.meta.get("path", ""),
                extra={"tool": tool_name, "latency_ms": round(latency_ms, 2)},
            )
        else:
            logger.warning(
                "✗ %s",
                result.error,
                extra={"tool": tool_name, "latency_ms": round(latency_ms, 2), "error": result.kind},
            )
        return result

    def _dispatch(self, tool_name: str, args: dict[str, Any]) -> FsResult:
        if tool_name not in self.registry:
            return _fail(UNKNOWN_TOOL, f"Unknown tool: {tool_name}")

        missing = self.registry.missing_arguments(tool_name, args)
        if missing:
            return _fail(
                INVALID_ARGUMENTS,
                f"Missing required argument(s) for {tool_name}: {', '.join(missing)}",
            )

        if tool_name == "read_file":
            return read_file(self.root, str(args["filename"]))
        if tool_name == "edit_file":
            return edit_file(self.root, str(args["filename"]), str(args["content"]))
        if tool_name == "list_files":
            path = args.get("path")
            return list_files(self.root, str(path) if path is not None else None)

        return _fail(UNKNOWN_TOOL, f"Unknown tool: {tool_name}")
