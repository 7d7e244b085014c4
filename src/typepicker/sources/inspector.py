"""Project inspection: guess the type and language of an existing directory.

Detection looks for marker files in the project root, in priority order.
The result is only a hint used to pre-seed the selection; inspection
failures are logged and reported as "no hint".
"""

from __future__ import annotations

import asyncio
from os import PathLike
from pathlib import Path
from typing import Callable, Protocol

import structlog

from typepicker.selection.display import ProjectLanguage, ProjectType
from typepicker.selection.models import DetectedHint

logger = structlog.get_logger(__name__)


class ProjectInspector(Protocol):
    """Protocol for project inspectors."""

    async def detect(self, path: str | PathLike[str]) -> DetectedHint | None:
        ...


def _language_from_container(root: Path) -> str | None:
    if (root / "requirements.txt").exists() or (root / "pyproject.toml").exists():
        return ProjectLanguage.PYTHON.value
    if (root / "go.mod").exists():
        return ProjectLanguage.GO.value
    if (root / "package.json").exists():
        return ProjectLanguage.JAVASCRIPT.value
    return None


def _node_language(root: Path) -> str:
    if (root / "tsconfig.json").exists():
        return ProjectLanguage.TYPESCRIPT.value
    return ProjectLanguage.JAVASCRIPT.value


def _maven_type(root: Path) -> str:
    pom = (root / "pom.xml").read_text(encoding="utf-8", errors="replace")
    if "spring-boot" in pom:
        return ProjectType.SPRING.value
    return ProjectType.LIBERTY.value


# Detection rules: (marker_file, type resolver, language resolver)
# Ordered by priority
DetectionRule = tuple[str, Callable[[Path], str], Callable[[Path], str | None]]

DETECTION_RULES: list[DetectionRule] = [
    (
        "Package.swift",
        lambda root: ProjectType.SWIFT.value,
        lambda root: ProjectLanguage.SWIFT.value,
    ),
    ("pom.xml", _maven_type, lambda root: ProjectLanguage.JAVA.value),
    ("package.json", lambda root: ProjectType.NODEJS.value, _node_language),
    ("Dockerfile", lambda root: ProjectType.DOCKER.value, _language_from_container),
]


class MarkerFileInspector:
    """Detect project type and language from marker files in the project root."""

    def __init__(self, rules: list[DetectionRule] | None = None) -> None:
        self.rules = rules if rules is not None else DETECTION_RULES

    async def detect(self, path: str | PathLike[str]) -> DetectedHint | None:
        """Inspect a project directory.

        Args:
            path: Project root directory

        Returns:
            DetectedHint for the first matching rule, None if nothing matched,
            the directory does not exist, or it could not be read
        """
        root = Path(path)
        try:
            return await asyncio.to_thread(self._detect_sync, root)
        except OSError as e:
            logger.error(
                "project_inspection_failed",
                project_path=str(root),
                error=str(e),
            )
            return None

    def _detect_sync(self, root: Path) -> DetectedHint | None:
        if not root.is_dir():
            logger.warning("project_path_not_a_directory", project_path=str(root))
            return None

        for marker_file, type_of, language_of in self.rules:
            if (root / marker_file).exists():
                hint = DetectedHint(type=type_of(root), language=language_of(root))
                logger.info(
                    "project_detected",
                    project_path=str(root),
                    marker=marker_file,
                    project_type=hint.type,
                    language=hint.language,
                )
                return hint

        logger.info("project_not_detected", project_path=str(root))
        return None
