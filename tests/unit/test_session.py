"""Unit tests for WizardSession coordination.

Tests cover:
- Catalogue refresh and source failures
- Detection hints applied through set_project_path
- Cancellation of superseded detections
- Forced refresh after repository changes
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from typepicker.selection.models import (
    DetectedHint,
    RebuildStatus,
    Selection,
    TemplateRecord,
)
from typepicker.session import WizardSession
from typepicker.sources.repositories import (
    RepositoryChange,
    RepositoryError,
    RepositoryOperation,
)
from typepicker.sources.templates import TemplateSourceConnectionError

CATALOGUE = [
    TemplateRecord(project_type="nodejs", language="javascript"),
    TemplateRecord(project_type="nodejs", language="typescript"),
    TemplateRecord(project_type="docker"),
]


class FakeSource:
    """Template source returning a configurable catalogue."""

    def __init__(self, templates=None, error=None):
        self.templates = list(templates or [])
        self.error = error
        self.calls: list[bool] = []

    async def fetch_templates(self, force_refresh: bool = False):
        self.calls.append(force_refresh)
        if self.error is not None:
            raise self.error
        return list(self.templates)


class GatedInspector:
    """Inspector whose results are released per path by the test."""

    def __init__(self, hints: dict[str, DetectedHint | None]):
        self.hints = hints
        self.gates: dict[str, asyncio.Event] = {key: asyncio.Event() for key in hints}
        self.started: list[str] = []

    async def detect(self, path):
        key = Path(path).name
        self.started.append(key)
        await self.gates[key].wait()
        return self.hints[key]


class InstantInspector:
    def __init__(self, hint=None, error=None):
        self.hint = hint
        self.error = error

    async def detect(self, path):
        if self.error is not None:
            raise self.error
        return self.hint


class TestRefresh:
    """Test catalogue refresh."""

    async def test_refresh_rebuilds_model(self):
        session = WizardSession(FakeSource(CATALOGUE))

        outcome = await session.refresh()

        assert outcome.status == RebuildStatus.READY
        assert session.view().types == ["nodejs", "docker"]

    async def test_source_failure_is_unavailable(self):
        source = FakeSource(error=TemplateSourceConnectionError("down"))
        session = WizardSession(source)

        outcome = await session.refresh()

        assert outcome.status == RebuildStatus.UNAVAILABLE
        assert session.view().condition == "source_unavailable"

    async def test_force_refresh_passed_through(self):
        source = FakeSource(CATALOGUE)
        session = WizardSession(source)

        await session.refresh()
        await session.refresh(force_refresh=True)

        assert source.calls == [False, True]


class TestProjectPath:
    """Test detection through set_project_path."""

    async def test_hint_applied(self, tmp_path):
        hint = DetectedHint(type="nodejs", language="typescript")
        session = WizardSession(FakeSource(CATALOGUE), inspector=InstantInspector(hint))
        await session.refresh()

        applied = await session.set_project_path(tmp_path)

        assert applied == hint
        assert session.model.selection == Selection(type="nodejs", language="typescript")

    async def test_detection_keeps_inspector_it_started_with(self, tmp_path):
        hint = DetectedHint(type="docker")
        session = WizardSession(FakeSource(CATALOGUE))

        class DisablingInspector:
            async def detect(self, path):
                session.inspector = None
                await asyncio.sleep(0)
                return hint

        session.inspector = DisablingInspector()
        await session.refresh()

        assert await session.set_project_path(tmp_path) == hint
        assert session.model.selection == Selection(type="docker", language=None)

    async def test_inspector_failure_means_no_hint(self, tmp_path):
        inspector = InstantInspector(error=RuntimeError("cwctl crashed"))
        session = WizardSession(FakeSource(CATALOGUE), inspector=inspector)
        await session.refresh()

        assert await session.set_project_path(tmp_path) is None
        assert session.model.selection == Selection()

    async def test_no_inspector(self, tmp_path):
        session = WizardSession(FakeSource(CATALOGUE))
        await session.refresh()

        assert await session.set_project_path(tmp_path) is None
        assert session.model.project_path == tmp_path

    async def test_explicit_pick_survives_later_refresh(self, tmp_path):
        hint = DetectedHint(type="nodejs", language="javascript")
        session = WizardSession(FakeSource(CATALOGUE), inspector=InstantInspector(hint))
        await session.refresh()
        await session.set_project_path(tmp_path)

        session.model.select_type("docker")
        await session.refresh(force_refresh=True)

        assert session.model.selection == Selection(type="docker", language=None)

    async def test_superseded_detection_is_discarded(self, tmp_path):
        inspector = GatedInspector(
            {
                "old": DetectedHint(type="nodejs", language="javascript"),
                "new": DetectedHint(type="docker"),
            }
        )
        session = WizardSession(FakeSource(CATALOGUE), inspector=inspector)
        await session.refresh()

        first = asyncio.create_task(session.set_project_path(tmp_path / "old"))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        second = asyncio.create_task(session.set_project_path(tmp_path / "new"))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        # Releasing the old result after the path changed must not apply it
        inspector.gates["old"].set()
        inspector.gates["new"].set()

        assert await first is None
        assert await second == DetectedHint(type="docker")
        assert session.model.selection == Selection(type="docker", language=None)
        assert session.model.project_path == tmp_path / "new"


class TestRepositories:
    """Test repository changes triggering a forced refresh."""

    async def test_change_forces_refresh(self):
        source = FakeSource(CATALOGUE)
        repositories = AsyncMock()
        repositories.apply_changes.return_value = True
        session = WizardSession(source, repositories=repositories)
        await session.refresh()

        source.templates = [TemplateRecord(project_type="spring", language="java")]
        change = RepositoryChange(operation=RepositoryOperation.ENABLE, url="https://r.test")
        changed = await session.update_repositories([change])

        assert changed is True
        assert source.calls == [False, True]
        assert session.view().types == ["spring"]

    async def test_no_change_no_refresh(self):
        source = FakeSource(CATALOGUE)
        repositories = AsyncMock()
        repositories.apply_changes.return_value = False
        session = WizardSession(source, repositories=repositories)

        assert await session.update_repositories([]) is False
        assert source.calls == []

    async def test_repository_error_propagates(self):
        repositories = AsyncMock()
        repositories.apply_changes.side_effect = RepositoryError("rejected", status_code=400)
        session = WizardSession(FakeSource(CATALOGUE), repositories=repositories)

        with pytest.raises(RepositoryError):
            await session.update_repositories([])

    async def test_requires_repository_manager(self):
        session = WizardSession(FakeSource(CATALOGUE))
        with pytest.raises(RuntimeError):
            await session.update_repositories([])
