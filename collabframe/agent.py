"""Core agent logic for collabframe.

The agent is the orchestrator that ties together:
- Session history (collabframe.session)
- Orientation prompt (collabframe.prompt)
- LLM round trips (collabframe.backends)
- Tool execution (collabframe.fs)
- Response finalization (collabframe.render)

One command runs as a small state machine:

    IDLE -> AWAITING_MODEL -> (TOOL_USE <-> AWAITING_MODEL) -> DONE | FAILED

Tool calls from one reply run strictly in the order the model emitted
them, and all their results go back to the model as one batched turn.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any

from collabframe.backends.base import Backend, CompletionRequest
from collabframe.config import Config
from collabframe.errors import CollabError, InputError, IterationLimitError, ProtocolError
from collabframe.format.types import ParsedReply, ToolCallBlock, ToolResultBlock, Turn
from collabframe.fs import FileToolExecutor
from collabframe.observability import generate_correlation_id
from collabframe.prompt import build_orientation, format_command, snapshot_project
from collabframe.render import ChangeLog, CommandResult, Renderer, failure, finalize, render_markdown
from collabframe.session import SessionStore
from collabframe.tools import ToolRegistry

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """States of one command's tool-use loop."""

    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    TOOL_USE = "tool_use"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ToolCall:
    """A tool call from the model, with its outcome."""

    id: str
    name: str
    arguments: dict[str, Any]
    success: bool = True
    result: str = ""


@dataclass
class AgentResponse:
    """Response from the agent, before rendering."""

    content: str | None
    changes: list[str]
    state: LoopState
    rounds: int
    tool_calls: list[ToolCall] = field(default_factory=list)
    error: str | None = None
    tokens_prompt: int = 0
    tokens_completion: int = 0


def check_calls(calls: list[ToolCallBlock]) -> None:
    """Tool call ids in one reply must be unique.

    Raises:
        ProtocolError: on a duplicate id
    """
    call_ids = [c.id for c in calls]
    if len(set(call_ids)) != len(call_ids):
        raise ProtocolError(f"Model reused a tool call id: {call_ids}")


def check_results(calls: list[ToolCallBlock], results: list[ToolResultBlock]) -> None:
    """Every call must have exactly one result, in call order.

    Raises:
        ProtocolError: on unmatched calls or results
    """
    call_ids = [c.id for c in calls]
    result_ids = [r.call_id for r in results]
    if result_ids != call_ids:
        raise ProtocolError(
            f"Tool results {result_ids} do not match tool calls {call_ids}"
        )


class Agent:
    """Runs human commands against the project through the model."""

    def __init__(
        self,
        config: Config,
        backend: Backend,
        store: SessionStore,
        executor: FileToolExecutor | None = None,
        registry: ToolRegistry | None = None,
        renderer: Renderer = render_markdown,
    ):
        self.config = config
        self.backend = backend
        self.store = store
        self.registry = registry or ToolRegistry()
        self.executor = executor or FileToolExecutor(config.project.root_path, self.registry)
        self.renderer = renderer

    def _transition(self, current: LoopState, state: LoopState, session_id: str) -> LoopState:
        logger.debug(
            "%s -> %s",
            current.value,
            state.value,
            extra={"session": session_id, "state": state.value},
        )
        return state

    def orientation(self) -> Turn:
        """Fresh orientation turn from the current project files."""
        snapshot = snapshot_project(
            self.config.project.root_path,
            self.config.project.context_files,
        )
        return build_orientation(snapshot, self.registry.names())

    async def _complete(self, turns: list[Turn]) -> ParsedReply:
        request = CompletionRequest(
            turns=turns,
            model=self.config.agent.model,
            tools=self.registry.definitions(),
            max_tokens=self.config.agent.max_tokens,
            temperature=self.config.agent.temperature,
        )
        return await self.backend.complete(request)

    def _run_tool(self, call: ToolCallBlock, changes: ChangeLog) -> tuple[ToolResultBlock, ToolCall]:
        logger.info("Processing tool call: %s %s", call.name, _summarize_args(call.arguments))
        outcome = self.executor.execute(call.name, call.arguments)
        changes.record(call.name, call.arguments, outcome.success, outcome.error)
        result = ToolResultBlock(
            call_id=call.id,
            content=outcome.content,
            is_error=not outcome.success,
        )
        record = ToolCall(
            id=call.id,
            name=call.name,
            arguments=call.arguments,
            success=outcome.success,
            result=outcome.content,
        )
        return result, record

    async def ask(self, command: str, session_id: str) -> AgentResponse:
        """Drive one command through the tool-use loop.

        The human turn is stored before the first model call and stays
        stored even if the call fails. Agent and tool-result turns are
        committed only when the loop ends without an error.

        Raises:
            CollabError: when the model call or the tool protocol fails
        """
        state = LoopState.IDLE
        max_rounds = self.config.agent.max_tool_rounds

        prior = self.store.window(session_id)
        command_turn = Turn.human(format_command(command))
        self.store.append(session_id, command_turn)

        in_flight: list[Turn] = []
        changes = ChangeLog()
        all_calls: list[ToolCall] = []
        narrative: str | None = None
        tokens_prompt = 0
        tokens_completion = 0
        rounds = 0

        try:
            while True:
                if rounds >= max_rounds:
                    raise IterationLimitError(max_rounds)
                rounds += 1

                state = self._transition(state, LoopState.AWAITING_MODEL, session_id)
                turns = [self.orientation(), *prior, command_turn, *in_flight]
                reply = await self._complete(turns)
                tokens_prompt += reply.tokens_prompt
                tokens_completion += reply.tokens_completion

                logger.info(
                    "Model reply: stop_reason=%s blocks=%s",
                    reply.stop_reason,
                    [b.type for b in reply.blocks],
                    extra={"session": session_id},
                )

                # The last text block seen wins
                if reply.text is not None:
                    narrative = reply.text

                if reply.blocks:
                    in_flight.append(Turn.agent(reply.blocks))

                if not reply.requested_tool_use:
                    state = self._transition(state, LoopState.DONE, session_id)
                    break

                calls = reply.tool_calls
                if not calls:
                    logger.warning(
                        "Model stopped for tool use without any tool calls; finishing",
                        extra={"session": session_id},
                    )
                    state = self._transition(state, LoopState.DONE, session_id)
                    break

                check_calls(calls)
                state = self._transition(state, LoopState.TOOL_USE, session_id)
                results: list[ToolResultBlock] = []
                for call in calls:
                    result, record = self._run_tool(call, changes)
                    results.append(result)
                    all_calls.append(record)

                check_results(calls, results)
                in_flight.append(Turn.human(list(results)))

        except IterationLimitError as e:
            # Every stored call has its results, so the history is consistent
            logger.warning(str(e), extra={"session": session_id})
            state = self._transition(state, LoopState.FAILED, session_id)
            self._commit(session_id, in_flight)
            return AgentResponse(
                content=narrative,
                changes=changes.entries,
                state=state,
                rounds=rounds,
                tool_calls=all_calls,
                error=str(e),
                tokens_prompt=tokens_prompt,
                tokens_completion=tokens_completion,
            )
        except CollabError:
            state = self._transition(state, LoopState.FAILED, session_id)
            self.store.persist()
            raise

        self._commit(session_id, in_flight)
        logger.info("Applied changes: %s", changes.entries, extra={"session": session_id})

        return AgentResponse(
            content=narrative,
            changes=changes.entries,
            state=state,
            rounds=rounds,
            tool_calls=all_calls,
            tokens_prompt=tokens_prompt,
            tokens_completion=tokens_completion,
        )

    def _commit(self, session_id: str, turns: list[Turn]) -> None:
        self.store.extend(session_id, turns)
        self.store.trim(session_id)
        self.store.persist()

    async def run_command(self, command: str | None, session_id: str | None) -> CommandResult:
        """Handle one inbound command end to end.

        Never raises: every failure becomes an unsuccessful CommandResult.
        """
        try:
            command, session_id = validate_command(command, session_id)
        except InputError as e:
            return failure(str(e))

        cid = generate_correlation_id()
        logger.info(
            "Received command: %s",
            command,
            extra={"session": session_id, "correlation_id": cid},
        )

        try:
            async with self.store.lock(session_id):
                response = await self.ask(command, session_id)
        except CollabError as e:
            logger.error(
                "Command failed: %s",
                e,
                extra={"session": session_id, "correlation_id": cid, "error": type(e).__name__},
            )
            return failure(str(e))
        except Exception as e:
            logger.exception(
                "Unexpected error in collaboration",
                extra={"session": session_id, "correlation_id": cid},
            )
            self.store.persist()
            return failure(str(e) or type(e).__name__)

        return finalize(
            response.content,
            response.changes,
            renderer=self.renderer,
            error=response.error,
        )


def validate_command(command: Any, session_id: Any) -> tuple[str, str]:
    """Check the inbound fields before anything else happens.

    Raises:
        InputError: if command or session id is missing or blank
    """
    if not isinstance(command, str) or not command.strip():
        raise InputError("No command provided")
    if not isinstance(session_id, str) or not session_id.strip():
        raise InputError("No sessionId provided")
    return command, session_id


def _summarize_args(arguments: dict[str, Any]) -> dict[str, Any]:
    """Arguments for logging, with long strings cut short."""
    summary: dict[str, Any] = {}
    for key, value in arguments.items():
        if isinstance(value, str) and len(value) > 80:
            summary[key] = f"{value[:80]}... ({len(value)} chars)"
        else:
            summary[key] = value
    return summary


def create_agent(config: Config, backend: Backend | None = None) -> Agent:
    """Build an agent with a loaded session store.

    Args:
        config: Loaded configuration
        backend: Optional backend (defaults to Anthropic over httpx)
    """
    if backend is None:
        from collabframe.backends.anthropic import AnthropicBackend

        backend = AnthropicBackend(
            api_key=config.anthropic.api_key,
            base_url=config.anthropic.base_url,
            api_version=config.anthropic.api_version,
            timeout=config.anthropic.timeout,
        )

    store = SessionStore(config.state_path, max_pairs=config.session.history_pairs)
    store.load()
    return Agent(config, backend, store)
