"""Integration tests for CLI commands.

This module tests the Typer-based CLI against an offline catalogue,
including detection and explicit type/language picks.
"""

from __future__ import annotations

import json

import pytest

from typepicker.main import app


@pytest.mark.integration
class TestTypesCLI:
    """Integration tests for listing types and languages."""

    def test_types(self, cli_runner, catalog_file):
        result = cli_runner.invoke(app, ["--catalog", str(catalog_file), "types"])

        assert result.exit_code == 0
        assert "nodejs" in result.stdout
        assert "spring" in result.stdout
        assert "docker" in result.stdout

    def test_types_empty_catalogue(self, cli_runner, tmp_path):
        catalog = tmp_path / "empty.json"
        catalog.write_text("[]")

        result = cli_runner.invoke(app, ["--catalog", str(catalog), "types"])

        assert result.exit_code == 0
        assert "No project types are available" in result.stdout

    def test_types_broken_catalogue(self, cli_runner, tmp_path):
        catalog = tmp_path / "broken.json"
        catalog.write_text("{")

        result = cli_runner.invoke(app, ["--catalog", str(catalog), "types"])

        assert result.exit_code == 1
        assert "could not be loaded" in result.stdout

    def test_languages(self, cli_runner, catalog_file):
        result = cli_runner.invoke(app, ["--catalog", str(catalog_file), "languages", "nodejs"])

        assert result.exit_code == 0
        assert "javascript" in result.stdout
        assert "typescript" in result.stdout

    def test_languages_unknown_type(self, cli_runner, catalog_file):
        result = cli_runner.invoke(app, ["--catalog", str(catalog_file), "languages", "cobol"])

        assert result.exit_code == 2
        assert "cobol" in result.stdout


@pytest.mark.integration
class TestDetectCLI:
    """Integration tests for project detection."""

    def test_detect(self, cli_runner, node_project):
        result = cli_runner.invoke(app, ["detect", str(node_project)])

        assert result.exit_code == 0
        assert "nodejs" in result.stdout
        assert "typescript" in result.stdout

    def test_detect_nothing(self, cli_runner, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()

        result = cli_runner.invoke(app, ["detect", str(empty)])

        assert result.exit_code == 1
        assert "No project type detected" in result.stdout


@pytest.mark.integration
class TestSelectCLI:
    """Integration tests for resolving a selection."""

    def test_select_from_detection(self, cli_runner, catalog_file, node_project):
        result = cli_runner.invoke(
            app, ["--catalog", str(catalog_file), "select", "--path", str(node_project)]
        )

        assert result.exit_code == 0
        assert "Type: nodejs" in result.stdout
        assert "Language: typescript" in result.stdout

    def test_explicit_type_overrides_detection(self, cli_runner, catalog_file, node_project):
        result = cli_runner.invoke(
            app,
            [
                "--catalog", str(catalog_file),
                "select", "--path", str(node_project), "--type", "docker",
            ],
        )

        assert result.exit_code == 0
        assert "Type: docker" in result.stdout
        assert "Language: unknown" in result.stdout

    def test_single_language_is_automatic(self, cli_runner, catalog_file):
        result = cli_runner.invoke(
            app, ["--catalog", str(catalog_file), "select", "--type", "spring"]
        )

        assert result.exit_code == 0
        assert "Language: java" in result.stdout

    def test_language_pick(self, cli_runner, catalog_file):
        result = cli_runner.invoke(
            app,
            [
                "--catalog", str(catalog_file),
                "select", "--type", "nodejs", "--language", "javascript",
            ],
        )

        assert result.exit_code == 0
        assert "Language: javascript" in result.stdout

    def test_language_choice_listed_when_missing(self, cli_runner, catalog_file):
        result = cli_runner.invoke(
            app, ["--catalog", str(catalog_file), "select", "--type", "nodejs"]
        )

        assert result.exit_code == 0
        assert "Languages available" in result.stdout
        assert "Language: unknown" in result.stdout

    def test_nothing_selected(self, cli_runner, catalog_file):
        result = cli_runner.invoke(app, ["--catalog", str(catalog_file), "select"])

        assert result.exit_code == 1
        assert "No project type selected" in result.stdout

    def test_language_not_offered(self, cli_runner, catalog_file):
        result = cli_runner.invoke(
            app,
            ["--catalog", str(catalog_file), "select", "--type", "spring", "--language", "go"],
        )

        assert result.exit_code == 2


@pytest.mark.integration
class TestReposCLI:
    """Integration tests for repository commands."""

    def test_repos_need_backend(self, cli_runner, catalog_file):
        result = cli_runner.invoke(app, ["--catalog", str(catalog_file), "repos", "list"])

        assert result.exit_code == 1
        assert "cannot be managed" in result.stdout


@pytest.mark.integration
class TestConfiguredCLI:
    """Integration tests driven by a typepicker.toml in the working directory."""

    def test_session_logs_carry_correlation_id(self, cli_runner, catalog_file, tmp_path):
        (tmp_path / "typepicker.toml").write_text('[logging]\nformat = "json"\n')

        result = cli_runner.invoke(app, ["--catalog", str(catalog_file), "types"])

        assert result.exit_code == 0
        opened = [
            json.loads(line)
            for line in result.output.splitlines()
            if "wizard_session_opened" in line
        ]
        assert len(opened) == 1
        assert opened[0]["correlation_id"] == opened[0]["wizard_session_id"]
        assert opened[0]["detection_enabled"] is True

    def test_detect_disabled_by_config(self, cli_runner, node_project, tmp_path):
        (tmp_path / "typepicker.toml").write_text("[inspector]\nenabled = false\n")

        result = cli_runner.invoke(app, ["detect", str(node_project)])

        assert result.exit_code == 1
        assert "Project detection is disabled" in result.output
        assert "nodejs" not in result.output
