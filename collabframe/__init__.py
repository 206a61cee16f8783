"""collabframe - an LLM agent that edits the application serving it."""

__version__ = "0.1.0"

from collabframe.agent import Agent, AgentResponse, LoopState, ToolCall, create_agent
from collabframe.config import Config, load_config
from collabframe.fs import FileToolExecutor, FsResult
from collabframe.session import Session, SessionStore
from collabframe.tools import Tool, ToolRegistry

__all__ = [
    "Agent",
    "AgentResponse",
    "Config",
    "FileToolExecutor",
    "FsResult",
    "LoopState",
    "Session",
    "SessionStore",
    "Tool",
    "ToolCall",
    "ToolRegistry",
    "create_agent",
    "load_config",
]
