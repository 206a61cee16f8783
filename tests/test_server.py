"""Tests for the HTTP surface."""

from fastapi.testclient import TestClient

from collabframe.agent import Agent, create_agent
from collabframe.format.types import ToolCallBlock
from collabframe.render import plain_text
from collabframe.server import create_app
from collabframe.session import SessionStore
from tests._utils.backends import ScriptedBackend, text_reply, tool_reply


def make_client(config, store, backend):
    agent = Agent(config, backend, store, renderer=plain_text)
    return TestClient(create_app(config, agent))


def test_collaborate_success(config, store, project):
    backend = ScriptedBackend([
        tool_reply(ToolCallBlock("c1", "edit_file", {"filename": "style.css", "content": "h1 { color: blue; }"})),
        text_reply("Made the header blue."),
    ])
    client = make_client(config, store, backend)

    response = client.post("/collaborate", json={"command": "make the header blue", "sessionId": "abc"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Made the header blue.",
        "changes": ["Modified style.css"],
    }
    assert (project / "style.css").read_text() == "h1 { color: blue; }"
    assert config.state_path.exists()


def test_missing_command(config, store):
    backend = ScriptedBackend([])
    client = make_client(config, store, backend)

    response = client.post("/collaborate", json={"sessionId": "abc"})

    assert response.json() == {"success": False, "error": "No command provided"}
    assert backend.requests == []


def test_missing_session_id(config, store):
    backend = ScriptedBackend([])
    client = make_client(config, store, backend)

    response = client.post("/collaborate", json={"command": "hi"})

    assert response.json() == {"success": False, "error": "No sessionId provided"}
    assert backend.requests == []


def test_health(config, store):
    client = make_client(config, store, ScriptedBackend([]))
    assert client.get("/health").json() == {"ok": True, "sessions": 0}


def test_serves_project_files(config, store):
    config.server.serve_static = True
    client = make_client(config, store, ScriptedBackend([]))

    page = client.get("/")
    assert page.status_code == 200
    assert "<h1>Hello</h1>" in page.text
    assert client.get("/style.css").status_code == 200
    # API routes still win over the static mount
    assert client.get("/health").json()["ok"] is True


def test_empty_body_is_missing_command(config, store):
    backend = ScriptedBackend([])
    client = make_client(config, store, backend)

    response = client.post("/collaborate")

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "No command provided"}
    assert backend.requests == []


def test_non_string_command_is_rejected(config, store):
    backend = ScriptedBackend([])
    client = make_client(config, store, backend)

    response = client.post("/collaborate", json={"command": 5, "sessionId": "x"})

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "No command provided"}
    assert backend.requests == []


def test_dotfiles_are_not_served(config, project):
    config.server.serve_static = True
    config.session.state_file = ".collabframe/sessions.json"
    (project / ".env").write_text("ANTHROPIC_API_KEY=sk-secret\n")
    store = SessionStore(config.state_path)
    backend = ScriptedBackend([text_reply("Hi.")])
    client = make_client(config, store, backend)

    client.post("/collaborate", json={"command": "say hi", "sessionId": "abc"})
    assert (project / ".collabframe" / "sessions.json").exists()

    for path in ("/.env", "/.collabframe/sessions.json", "/assets/../.env"):
        response = client.get(path)
        assert response.status_code == 404, path
        assert "sk-secret" not in response.text
        assert "say hi" not in response.text
    assert client.get("/index.html").status_code == 200


def test_startup_survives_malformed_state_file(config):
    config.state_path.parent.mkdir(parents=True)
    config.state_path.write_text('{"s": [{"role": "human", "content": ["oops"]}]}')

    agent = create_agent(config, backend=ScriptedBackend([]))
    client = TestClient(create_app(config, agent))

    assert client.get("/health").json() == {"ok": True, "sessions": 0}
