"""Exception hierarchy for collabframe.

Tool failures are not exceptions: they travel back to the model as
error-flagged tool results. Everything here aborts the current command.
"""

from __future__ import annotations


class CollabError(Exception):
    """Base class for errors surfaced to the HTTP caller."""


class InputError(CollabError):
    """The inbound command was incomplete."""


class BackendError(CollabError):
    """Error raised when the model call fails."""

    def __init__(self, message: str, *, failure_type: str | None = None) -> None:
        super().__init__(message)
        self.failure_type: str | None = failure_type


class MalformedReplyError(CollabError):
    """The model reply could not be understood."""


class ProtocolError(CollabError):
    """Tool calls and tool results do not line up."""


class IterationLimitError(CollabError):
    """The tool-use loop hit its round cap."""

    def __init__(self, rounds: int) -> None:
        super().__init__(f"Tool-use loop stopped after {rounds} rounds without a final answer")
        self.rounds = rounds
