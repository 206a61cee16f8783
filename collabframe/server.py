"""HTTP server for collabframe.

POST /collaborate runs one command; the project directory itself is served
as static files so the page the human is editing is the page they see.
Dotfiles (.env, .collabframe/ state) are never served.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from collabframe import __version__
from collabframe.agent import Agent, create_agent
from collabframe.config import Config, load_config

logger = logging.getLogger(__name__)


class ProjectFiles(StaticFiles):
    """Static files that refuse any path with a hidden segment."""

    async def get_response(self, path: str, scope):
        parts = path.replace(os.sep, "/").split("/")
        if any(part.startswith(".") and part not in (".", "..") for part in parts):
            raise HTTPException(status_code=404)
        return await super().get_response(path, scope)


class CommandRequest(BaseModel):
    # Untyped so validate_command, not pydantic, decides what is acceptable
    command: Any = None
    session_id: Any = Field(default=None, alias="sessionId")

    model_config = {"populate_by_name": True}


class CommandResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    changes: Optional[list[str]] = None
    error: Optional[str] = None


def create_app(config: Config | None = None, agent: Agent | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        config: Loaded configuration (loads the default if not given)
        agent: Optional pre-built agent (tests inject one with a fake backend)
    """
    if config is None:
        config = agent.config if agent is not None else load_config()
    if agent is None:
        agent = create_agent(config)

    app = FastAPI(title="collabframe", version=__version__)
    app.state.agent = agent

    @app.get("/health")
    def health():
        return {"ok": True, "sessions": len(agent.store)}

    @app.post("/collaborate", response_model=CommandResponse, response_model_exclude_none=True)
    async def collaborate(req: Optional[CommandRequest] = None):
        if req is None:
            req = CommandRequest()
        result = await agent.run_command(req.command, req.session_id)
        return result.to_dict()

    if config.server.serve_static:
        # Mounted last so the API routes take precedence
        app.mount(
            "/",
            ProjectFiles(directory=config.project.root_path, html=True, check_dir=False),
            name="static",
        )

    logger.info("Serving project at %s", config.project.root_path)
    return app
