"""Display names and ordering for project types and languages.

Renderers list type and language ids sorted by their human-readable label,
case-insensitively, with the raw id as tie-break.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Protocol


class ProjectType(str, Enum):
    """Well-known project type ids."""

    LIBERTY = "liberty"
    SPRING = "spring"
    SWIFT = "swift"
    NODEJS = "nodejs"
    DOCKER = "docker"
    APPSODY = "appsodyExtension"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return _TYPE_LABELS[self]

    @classmethod
    def get_display_name(cls, type_id: str) -> str:
        """Label for a type id; ids outside the catalogue display as themselves."""
        try:
            return cls(type_id).display_name
        except ValueError:
            return type_id


class ProjectLanguage(str, Enum):
    """Well-known language ids."""

    JAVA = "java"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    SWIFT = "swift"
    PYTHON = "python"
    GO = "go"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return _LANGUAGE_LABELS[self]

    @classmethod
    def get_display_name(cls, language_id: str) -> str:
        """Label for a language id; ids outside the catalogue display as themselves."""
        try:
            return cls(language_id).display_name
        except ValueError:
            return language_id


_TYPE_LABELS: dict[ProjectType, str] = {
    ProjectType.LIBERTY: "MicroProfile / Java EE",
    ProjectType.SPRING: "Spring",
    ProjectType.SWIFT: "Swift",
    ProjectType.NODEJS: "Node.js",
    ProjectType.DOCKER: "Other (Basic Container)",
    ProjectType.APPSODY: "Appsody",
    ProjectType.UNKNOWN: "Unknown",
}

_LANGUAGE_LABELS: dict[ProjectLanguage, str] = {
    ProjectLanguage.JAVA: "Java",
    ProjectLanguage.JAVASCRIPT: "JavaScript",
    ProjectLanguage.TYPESCRIPT: "TypeScript",
    ProjectLanguage.SWIFT: "Swift",
    ProjectLanguage.PYTHON: "Python",
    ProjectLanguage.GO: "Go",
    ProjectLanguage.UNKNOWN: "Unknown",
}


class DisplayNameResolver(Protocol):
    """Maps type and language ids to human-readable labels."""

    def type_label(self, type_id: str) -> str:
        ...

    def language_label(self, language_id: str) -> str:
        ...


class CatalogDisplayNames:
    """DisplayNameResolver backed by the ProjectType/ProjectLanguage catalogues.

    Extra labels, for example from template repository metadata, take
    precedence over the built-in ones.
    """

    def __init__(
        self,
        type_labels: dict[str, str] | None = None,
        language_labels: dict[str, str] | None = None,
    ) -> None:
        self._type_labels = dict(type_labels or {})
        self._language_labels = dict(language_labels or {})

    def type_label(self, type_id: str) -> str:
        if type_id in self._type_labels:
            return self._type_labels[type_id]
        return ProjectType.get_display_name(type_id)

    def language_label(self, language_id: str) -> str:
        if language_id in self._language_labels:
            return self._language_labels[language_id]
        return ProjectLanguage.get_display_name(language_id)


def sort_for_display(ids: Iterable[str], label: Callable[[str], str]) -> list[str]:
    """Sort ids by label, case-insensitively, ties broken by id.

    Args:
        ids: Type or language ids
        label: Function returning the display label of an id

    Returns:
        New list of ids in display order

    Example:
        >>> sort_for_display(["nodejs", "docker"], ProjectType.get_display_name)
        ['nodejs', 'docker']
    """
    return sorted(ids, key=lambda item: (label(item).casefold(), item))
