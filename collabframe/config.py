"""Configuration loading for collabframe.

Config precedence (lowest to highest):
1. Built-in defaults (in code)
2. ~/.collabframe/config.toml (user global)
3. ./collabframe.toml (project local)
4. Explicit --config path
5. Environment variables (COLLABFRAME_*, ANTHROPIC_API_KEY)
6. CLI flags
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import logging
import os
from pathlib import Path
import tomllib
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class AgentConfig:
    """Agent configuration."""

    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 4000
    max_tool_rounds: int = 10
    temperature: float | None = None

    def validate(self) -> None:
        if self.max_tool_rounds <= 0:
            raise ValueError("max_tool_rounds must be positive")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")


@dataclass
class AnthropicConfig:
    """Anthropic backend configuration."""

    base_url: str = "https://api.anthropic.com"
    api_key: str | None = None
    api_version: str = "2023-06-01"
    timeout: float = 300


@dataclass
class ProjectConfig:
    """The directory the agent works on."""

    root: str = "."
    context_files: list[str] = field(
        default_factory=lambda: ["index.html", "style.css", "app.js", "README.md"]
    )

    @property
    def root_path(self) -> Path:
        return Path(self.root).expanduser().resolve()


@dataclass
class SessionConfig:
    """Session configuration."""

    state_file: str = ".collabframe/sessions.json"
    history_pairs: int = 10

    def validate(self) -> None:
        if self.history_pairs <= 0:
            raise ValueError("history_pairs must be positive")


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 3000
    serve_static: bool = True

    def validate(self) -> None:
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Invalid port: {self.port}")


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "info"
    format: str = "text"  # "text" | "json"

    def validate(self) -> None:
        if self.format not in ("text", "json"):
            raise ValueError(f"Invalid log format: {self.format}")


@dataclass
class Config:
    """Root configuration."""

    agent: AgentConfig = field(default_factory=AgentConfig)
    anthropic: AnthropicConfig = field(default_factory=AnthropicConfig)
    project: ProjectConfig = field(default_factory=ProjectConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        self.agent.validate()
        self.session.validate()
        self.server.validate()
        self.logging.validate()

    @property
    def state_path(self) -> Path:
        """State file, resolved against the project root when relative."""
        path = Path(self.session.state_file).expanduser()
        if path.is_absolute():
            return path
        return self.project.root_path / path

    @classmethod
    def load(cls, config_path: str | None = None) -> Config:
        """Load configuration with precedence."""
        config = cls()

        # Load from files (lowest to highest priority)
        config_files = [
            Path.home() / ".collabframe" / "config.toml",
            Path.cwd() / "collabframe.toml",
        ]

        if config_path:
            config_files.append(Path(config_path))

        for path in config_files:
            if path.exists():
                config = _merge_config(config, _load_toml(path))

        # .env does not override variables that are already set
        load_dotenv(Path.cwd() / ".env", override=False)
        config = _apply_env_overrides(config)

        config.validate()
        return config


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return {}


def _merge_config(config: Config, data: dict[str, Any]) -> Config:
    """Merge TOML data into config.

    Unknown sections and keys are ignored.
    """
    for section in fields(config):
        section_data = data.get(section.name)
        if not isinstance(section_data, dict):
            continue
        section_obj = getattr(config, section.name)
        known = {f.name for f in fields(section_obj)}
        for key, value in section_data.items():
            if key in known:
                setattr(section_obj, key, value)
    return config


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides.

    Pattern: COLLABFRAME_SECTION_KEY, e.g. COLLABFRAME_AGENT_MODEL.
    ANTHROPIC_API_KEY and PORT are honoured as well.
    """

    env_map = {
        "COLLABFRAME_AGENT_MODEL": ("agent", "model"),
        "COLLABFRAME_AGENT_MAX_TOKENS": ("agent", "max_tokens", int),
        "COLLABFRAME_AGENT_MAX_TOOL_ROUNDS": ("agent", "max_tool_rounds", int),
        "ANTHROPIC_API_KEY": ("anthropic", "api_key"),
        "ANTHROPIC_BASE_URL": ("anthropic", "base_url"),
        "COLLABFRAME_ANTHROPIC_TIMEOUT": ("anthropic", "timeout", float),
        "COLLABFRAME_PROJECT_ROOT": ("project", "root"),
        "COLLABFRAME_SESSION_STATE_FILE": ("session", "state_file"),
        "COLLABFRAME_SESSION_HISTORY_PAIRS": ("session", "history_pairs", int),
        "COLLABFRAME_SERVER_HOST": ("server", "host"),
        "PORT": ("server", "port", int),
        "COLLABFRAME_SERVER_PORT": ("server", "port", int),
        "COLLABFRAME_SERVER_SERVE_STATIC": ("server", "serve_static", _as_bool),
        "COLLABFRAME_LOG_LEVEL": ("logging", "level"),
        "COLLABFRAME_LOG_FORMAT": ("logging", "format"),
    }

    for env_var, spec in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            section = spec[0]
            key = spec[1]
            converter = spec[2] if len(spec) > 2 else str

            section_obj = getattr(config, section)
            try:
                setattr(section_obj, key, converter(value))
            except (ValueError, TypeError):
                logger.warning("Ignoring invalid value for %s: %r", env_var, value)

    return config


# Convenience function
def load_config(config_path: str | None = None) -> Config:
    """Load configuration."""
    return Config.load(config_path)
