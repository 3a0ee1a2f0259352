#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Shared test fixtures for the Scope-to-SOW test suite."""

import sys
from pathlib import Path

import pytest

# Add project root to path
BASE_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BASE_DIR))

WIDGET_HTML = "<!doctype html><html><body><form id='sow-form'></form></body></html>"


@pytest.fixture
def acme_input():
    """The end-to-end example project."""
    return {
        "project_name": "Acme Site",
        "goal": "Launch site",
        "deliverables": "Homepage\nContact page",
        "timeline_weeks": 4,
    }


@pytest.fixture
def full_input():
    """A project with every optional field filled in."""
    return {
        "project_name": "  Data Platform Migration  ",
        "client": "Globex Corp",
        "goal": "Move reporting to the new warehouse\r\n",
        "deliverables": "Migration plan  \r\nPipelines\r\n\r\nRunbook",
        "timeline_weeks": 12,
        "constraints": "Fixed budget \r\nNo weekend cutovers",
    }


@pytest.fixture
def server_config(tmp_path, monkeypatch):
    """Point the MCP server at a temporary config and widget file."""
    widget_file = tmp_path / "widget.html"
    widget_file.write_text(WIDGET_HTML, encoding="utf-8")

    config_file = tmp_path / "server_config.yaml"
    config_file.write_text(
        "server:\n"
        "  name: scope-to-sow-test\n"
        "  version: 9.9.9\n"
        "widget:\n"
        f"  path: {widget_file.as_posix()}\n",
        encoding="utf-8",
    )

    import tools.mcp.sow_server as sow_server
    monkeypatch.setattr(sow_server, "CONFIG_PATH", config_file)
    yield config_file


@pytest.fixture
def public_dir(tmp_path, monkeypatch):
    """A temporary public/ directory with one HTML and one text file."""
    public = tmp_path / "public"
    (public / ".well-known").mkdir(parents=True)
    (public / "widget.html").write_text(WIDGET_HTML, encoding="utf-8")
    (public / ".well-known" / "openai").write_text("verification-token",
                                                   encoding="utf-8")
    (tmp_path / "secret.txt").write_text("do not serve", encoding="utf-8")

    import tools.web.app as web_app
    monkeypatch.setattr(web_app, "PUBLIC_DIR", public)
    yield public


@pytest.fixture
def client(server_config):
    """Create a Flask test client."""
    from tools.web.app import app
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client

