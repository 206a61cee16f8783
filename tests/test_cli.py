import json

from click.testing import CliRunner

from collabframe import cli
from collabframe.agent import Agent
from collabframe.format.types import Turn
from collabframe.session import SessionStore
from tests._utils.backends import ScriptedBackend, text_reply


def test_version():
    result = CliRunner().invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert "collabframe" in result.output


def test_ask_json(monkeypatch, project, tmp_path):
    monkeypatch.setenv("COLLABFRAME_LOG_LEVEL", "critical")
    backend = ScriptedBackend([text_reply("Nothing to do.")])

    def fake_create_agent(config):
        store = SessionStore(config.state_path, max_pairs=config.session.history_pairs)
        return Agent(config, backend, store)

    monkeypatch.setattr(cli, "create_agent", fake_create_agent)

    result = CliRunner().invoke(
        cli.main, ["ask", "hello there", "--root", str(project), "--json"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload == {"success": True, "message": "Nothing to do.", "changes": []}
    assert "hello there" in backend.requests[0].turns[-1].content


def test_ask_failure_exits_nonzero(monkeypatch, project):
    monkeypatch.setenv("COLLABFRAME_LOG_LEVEL", "critical")
    backend = ScriptedBackend([RuntimeError("down")])
    monkeypatch.setattr(
        cli,
        "create_agent",
        lambda config: Agent(config, backend, SessionStore(None)),
    )
    result = CliRunner().invoke(cli.main, ["ask", "hi", "--root", str(project), "--json"])
    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"] == "down"


def test_sessions_lists_stored_sessions(project):
    store = SessionStore(project / ".collabframe" / "sessions.json")
    store.append("abc", Turn.human("hi"))
    store.append("abc", Turn.agent("hello"))
    store.persist()

    result = CliRunner().invoke(cli.main, ["sessions", "--root", str(project)])

    assert result.exit_code == 0, result.output
    assert "abc" in result.output
    assert "2" in result.output


def test_sessions_empty(project):
    result = CliRunner().invoke(cli.main, ["sessions", "--root", str(project)])
    assert result.exit_code == 0


def test_serve_passes_lowercase_log_level(monkeypatch, project):
    monkeypatch.setenv("COLLABFRAME_LOG_LEVEL", "WARNING")
    seen = {}

    def fake_run(app, **kwargs):
        seen.update(kwargs)

    monkeypatch.setattr("uvicorn.run", fake_run)
    result = CliRunner().invoke(cli.main, ["serve", "--root", str(project), "--port", "4100"])

    assert result.exit_code == 0, result.output
    assert seen == {"host": "127.0.0.1", "port": 4100, "log_level": "warning"}
