"""Tests for orientation building."""

import json
import logging

from collabframe.config import LoggingConfig
from collabframe.format.types import Role
from collabframe.observability import JsonLogFormatter, setup_logging
from collabframe.prompt import build_orientation, format_command, snapshot_project


def test_snapshot_reads_only_existing_context_files(project):
    snapshot = snapshot_project(project, ["index.html", "missing.js", "assets"])
    assert snapshot == {"index.html": "<h1>Hello</h1>\n"}


def test_orientation_is_pure():
    snapshot = {"index.html": "<p>hi</p>"}
    first = build_orientation(snapshot, ["read_file"])
    second = build_orientation(snapshot, ["read_file"])
    assert first == second
    assert first.role == Role.HUMAN
    text = first.blocks[0].text
    assert "=== index.html ===\n<p>hi</p>" in text
    assert "Available tools: read_file" in text


def test_orientation_for_empty_project():
    text = build_orientation({}).blocks[0].text
    assert "none of the key files exist yet" in text


def test_format_command():
    assert format_command("make it blue") == 'The human has given you this command: "make it blue"'


def test_json_log_formatter_includes_extras():
    record = logging.LogRecord("collabframe.agent", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.session = "abc"
    record.tool = "read_file"
    data = json.loads(JsonLogFormatter().format(record))
    assert data["msg"] == "hello world"
    assert data["level"] == "info"
    assert data["session"] == "abc"
    assert data["tool"] == "read_file"


def test_setup_logging_replaces_handlers():
    logger = setup_logging(LoggingConfig(level="debug", format="json"))
    setup_logging(LoggingConfig(level="debug", format="json"))
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonLogFormatter)
    assert logger.level == logging.DEBUG
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
