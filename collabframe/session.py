"""Session management for collabframe.

Sessions give the agent continuity across independent HTTP requests.
All sessions live in one in-memory map that is written out in full to a
single JSON file: {session_id: [turn, ...]}.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any

from collabframe.format.types import Role, Turn, turn_from_dict, turn_to_dict

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """A conversation session."""

    id: str
    turns: list[Turn] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, compare=False, repr=False)

    def to_list(self) -> list[dict[str, Any]]:
        return [turn_to_dict(t) for t in self.turns]

    @classmethod
    def from_list(cls, session_id: str, data: list[dict[str, Any]]) -> Session:
        return cls(id=session_id, turns=[turn_from_dict(t) for t in data])


def _starts_cleanly(turn: Turn) -> bool:
    """A window may only open on a human turn that carries no tool results."""
    return turn.role == Role.HUMAN and not turn.tool_results


class SessionStore:
    """Owns every session and the file they persist to.

    Commands for the same session id must hold lock(session_id) so two
    requests never interleave appends on one turn list.
    """

    def __init__(self, state_file: str | Path | None = None, max_pairs: int = 10):
        self.state_file = Path(state_file).expanduser() if state_file else None
        self.max_pairs = max_pairs
        self._sessions: dict[str, Session] = {}

    def get_or_create(self, session_id: str) -> Session:
        """Return the session, creating an empty one on first use."""
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(id=session_id)
            self._sessions[session_id] = session
            logger.debug("Created session %s", session_id)
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def append(self, session_id: str, turn: Turn) -> None:
        """Append a turn, creating the session if needed."""
        self.get_or_create(session_id).turns.append(turn)

    def extend(self, session_id: str, turns: list[Turn]) -> None:
        self.get_or_create(session_id).turns.extend(turns)

    def trim(self, session_id: str) -> int:
        """Keep only the most recent max_pairs human/agent pairs.

        Older turns are dropped, not summarized. Returns how many turns
        were removed.
        """
        session = self.get_or_create(session_id)
        keep = self.max_pairs * 2
        excess = len(session.turns) - keep
        if excess <= 0:
            return 0
        del session.turns[:excess]
        logger.debug("Trimmed %d turn(s) from session %s", excess, session_id)
        return excess

    def window(self, session_id: str) -> list[Turn]:
        """Bounded view of a session's history for the model.

        Leading agent turns and tool-result turns are skipped: after
        trimming they may have lost the turn they answer.
        """
        turns = self.get_or_create(session_id).turns[-self.max_pairs * 2 :]
        start = 0
        while start < len(turns) and not _starts_cleanly(turns[start]):
            start += 1
        return list(turns[start:])

    def lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock serializing commands for one id."""
        return self.get_or_create(session_id).lock

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {sid: s.to_list() for sid, s in self._sessions.items()}

    def persist(self) -> bool:
        """Write every session to the state file.

        The file is replaced atomically. Write failures are logged and
        reported as False; the in-memory state is unaffected.
        """
        if self.state_file is None:
            return False
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.state_file.parent, prefix=".sessions-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self.to_dict(), f, indent=2)
                os.replace(tmp, self.state_file)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to persist sessions to %s: %s", self.state_file, e)
            return False
        return True

    def load(self) -> int:
        """Replace in-memory sessions with the persisted ones.

        A missing or malformed file means no prior sessions. Returns the
        number of sessions loaded.
        """
        self._sessions = {}
        if self.state_file is None or not self.state_file.exists():
            return 0
        try:
            data = json.loads(self.state_file.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top-level value is not an object")
            sessions = {
                str(sid): Session.from_list(str(sid), turns)
                for sid, turns in data.items()
            }
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(
                "Ignoring unreadable session file %s (%s); starting empty",
                self.state_file,
                e,
            )
            return 0
        self._sessions = sessions
        logger.info("Loaded %d session(s) from %s", len(sessions), self.state_file)
        return len(sessions)
