"""collabframe CLI entry point.

    collabframe serve                      Run the collaboration server
    collabframe ask "make the header blue" Run one command locally
    collabframe sessions                   List stored sessions
"""

from __future__ import annotations

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from collabframe import __version__
from collabframe.agent import create_agent
from collabframe.config import Config, load_config
from collabframe.observability import setup_logging
from collabframe.render import plain_text
from collabframe.session import SessionStore

console = Console(stderr=True)  # Metadata to stderr
stdout_console = Console()  # Main output to stdout


def _load(config_path: str | None, root: str | None) -> Config:
    try:
        config = load_config(config_path)
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(2)
    if root:
        config.project.root = root
    setup_logging(config.logging)
    return config


@click.group()
@click.version_option(__version__, prog_name="collabframe")
def main() -> None:
    """collabframe - talk to an agent that edits the app serving it."""


@main.command()
@click.option("--config", "config_path", help="Config file path")
@click.option("--root", help="Project root to serve and edit")
@click.option("--host", help="Bind address")
@click.option("--port", type=int, help="Port")
def serve(config_path: str | None, root: str | None, host: str | None, port: int | None) -> None:
    """Run the collaboration server."""
    import uvicorn

    from collabframe.server import create_app

    config = _load(config_path, root)
    if host:
        config.server.host = host
    if port:
        config.server.port = port

    app = create_app(config)
    console.print(
        f"🚀 collabframe running at http://{config.server.host}:{config.server.port}"
    )
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_level=config.logging.level.lower())


@main.command()
@click.argument("command")
@click.option("-s", "--session", "session_id", default="cli", show_default=True, help="Session id")
@click.option("--config", "config_path", help="Config file path")
@click.option("--root", help="Project root to edit")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
def ask(command: str, session_id: str, config_path: str | None, root: str | None, json_output: bool) -> None:
    """Run one command through the agent."""
    config = _load(config_path, root)
    agent = create_agent(config)
    agent.renderer = plain_text

    result = asyncio.run(agent.run_command(command, session_id))

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        if result.message:
            stdout_console.print(Markdown(result.message))
        for change in result.changes or []:
            console.print(f"[dim]•[/dim] {change}")
        if result.error:
            console.print(f"[red]Error:[/red] {result.error}")

    if not result.success:
        sys.exit(1)


@main.command()
@click.option("--config", "config_path", help="Config file path")
@click.option("--root", help="Project root")
def sessions(config_path: str | None, root: str | None) -> None:
    """List stored sessions."""
    config = _load(config_path, root)
    store = SessionStore(config.state_path, max_pairs=config.session.history_pairs)
    store.load()

    if not len(store):
        console.print("[dim]No sessions[/dim]")
        return

    table = Table(title=f"Sessions ({config.state_path})")
    table.add_column("Session")
    table.add_column("Turns", justify="right")
    for session_id in store.session_ids():
        table.add_row(session_id, str(len(store.get_or_create(session_id).turns)))
    stdout_console.print(table)


if __name__ == "__main__":
    main()
