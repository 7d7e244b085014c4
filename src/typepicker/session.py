"""Wizard session: drives the selection model from its collaborators.

The session owns the slow work the model must not do itself: fetching the
template catalogue, inspecting project directories and applying template
repository changes. Everything runs on one asyncio event loop, which
serializes all model mutations.

Only the detection started for the most recent project path may touch the
selection. Starting a new detection cancels the previous one, and a result
that arrives for a path that is no longer current is discarded.
"""

from __future__ import annotations

import asyncio
import uuid
from os import PathLike
from pathlib import Path

import structlog

from typepicker.selection.display import CatalogDisplayNames, DisplayNameResolver
from typepicker.selection.models import DetectedHint, RebuildOutcome, SelectionView
from typepicker.selection.state_machine import SelectionModel
from typepicker.sources.inspector import ProjectInspector
from typepicker.sources.repositories import RepositoryChange, RepositoryManager
from typepicker.sources.templates import TemplateSource, TemplateSourceError

logger = structlog.get_logger(__name__)


class WizardSession:
    """Coordinates one project-type wizard run.

    Attributes:
        model: The selection model driven by this session
        source: Template catalogue provider
        inspector: Project inspector, None to disable detection
        repositories: Repository manager, None when repositories are read-only
        resolver: Display names used to order the rendered lists
    """

    def __init__(
        self,
        source: TemplateSource,
        inspector: ProjectInspector | None = None,
        repositories: RepositoryManager | None = None,
        resolver: DisplayNameResolver | None = None,
        model: SelectionModel | None = None,
        session_id: str | None = None,
    ) -> None:
        self.source = source
        self.inspector = inspector
        self.repositories = repositories
        self.resolver = resolver or CatalogDisplayNames()
        self.model = model or SelectionModel()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self._detect_task: asyncio.Task[DetectedHint | None] | None = None
        self.logger = logger.bind(component="WizardSession", wizard_session_id=self.session_id)

    async def refresh(self, force_refresh: bool = False) -> RebuildOutcome:
        """Fetch templates and rebuild the model's index.

        Source failures are logged and reported as an UNAVAILABLE outcome.
        """
        try:
            templates = await self.source.fetch_templates(force_refresh=force_refresh)
        except TemplateSourceError as e:
            self.logger.error(
                "template_fetch_failed",
                force_refresh=force_refresh,
                error=str(e),
                error_type=type(e).__name__,
            )
            return self.model.rebuild_index(None)

        return self.model.rebuild_index(templates)

    async def set_project_path(self, path: str | PathLike[str] | None) -> DetectedHint | None:
        """Switch to a new project directory and apply its detection hint.

        Any detection still running for a previous path is cancelled.

        Returns:
            The applied hint, or None when nothing was detected or the
            detection was superseded by a newer path
        """
        previous = self._detect_task
        if previous is not None and not previous.done():
            previous.cancel()
            self.logger.debug("detection_cancelled")

        self.model.change_project_path(path)
        self._detect_task = None
        if path is None or self.inspector is None:
            return None

        project_path = Path(path)
        task = asyncio.create_task(self._detect(self.inspector, project_path))
        self._detect_task = task
        await asyncio.wait({task})

        if task.cancelled() or self._detect_task is not task:
            self.logger.info("detection_superseded", project_path=str(project_path))
            return None

        hint = task.result()
        self._detect_task = None
        self.model.apply_detected_hint(hint, path=project_path)
        return hint

    async def _detect(self, inspector: ProjectInspector, path: Path) -> DetectedHint | None:
        try:
            return await inspector.detect(path)
        except Exception as e:
            self.logger.error(
                "project_detection_failed",
                project_path=str(path),
                error=str(e),
            )
            return None

    async def update_repositories(self, changes: list[RepositoryChange]) -> bool:
        """Apply repository changes and force a catalogue refresh if any applied.

        Returns:
            True if repositories changed

        Raises:
            RuntimeError: If the session has no repository manager
            RepositoryError: If the backend rejects a change
        """
        if self.repositories is None:
            raise RuntimeError("WizardSession has no repository manager")

        changed = await self.repositories.apply_changes(changes)
        if changed:
            outcome = await self.refresh(force_refresh=True)
            self.logger.info(
                "catalogue_refreshed_after_repository_change",
                status=outcome.status.value,
            )
        return changed

    def view(self) -> SelectionView:
        """Render-ready snapshot of the model."""
        return self.model.view(self.resolver)
