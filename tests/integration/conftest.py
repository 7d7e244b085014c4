"""Pytest fixtures for CLI integration tests.

The CLI runs against an offline JSON catalogue (--catalog) so no template
backend is needed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog
from typer.testing import CliRunner

CATALOGUE = [
    {"label": "Express", "projectType": "nodejs", "language": "javascript"},
    {"label": "Nest", "projectType": "nodejs", "language": "typescript"},
    {"label": "Spring Boot", "projectType": "spring", "language": "java"},
    {"label": "Basic container", "projectType": "docker", "language": ""},
]


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run each CLI test from an empty directory with no user config.

    Logging handlers point at the runner's streams, so they are dropped
    after each test.
    """
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    """Write the sample template catalogue to disk."""
    path = tmp_path / "templates.json"
    path.write_text(json.dumps(CATALOGUE))
    return path


@pytest.fixture
def node_project(tmp_path: Path) -> Path:
    """A TypeScript Node.js project directory."""
    root = tmp_path / "node-app"
    root.mkdir()
    (root / "package.json").write_text("{}")
    (root / "tsconfig.json").write_text("{}")
    return root
