import logging
import os
from pathlib import Path
import sys

import pytest

# Ensure repo root is importable (for `tests._utils`).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from collabframe.config import Config  # noqa: E402
from collabframe.session import SessionStore  # noqa: E402


@pytest.fixture(autouse=True)
def hermetic_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Autouse: each test runs in its own tmp cwd and HOME, with no
    collabframe/Anthropic environment leaking in.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in list(os.environ):
        if var.startswith("COLLABFRAME_") or var in ("ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL", "PORT"):
            monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project tree for the agent to work on."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "index.html").write_text("<h1>Hello</h1>\n")
    (root / "style.css").write_text("h1 { color: black; }\n")
    (root / "assets").mkdir()
    return root


@pytest.fixture
def config(project: Path, tmp_path: Path) -> Config:
    cfg = Config()
    cfg.project.root = str(project)
    cfg.session.state_file = str(tmp_path / "state" / "sessions.json")
    cfg.session.history_pairs = 10
    cfg.agent.max_tool_rounds = 5
    cfg.server.serve_static = False
    return cfg


@pytest.fixture
def store(config: Config) -> SessionStore:
    return SessionStore(config.state_path, max_pairs=config.session.history_pairs)


@pytest.fixture(autouse=True)
def reset_collabframe_logger():
    """CLI commands install handlers on the package logger; drop them after each test."""
    yield
    logger = logging.getLogger("collabframe")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
