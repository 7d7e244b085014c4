"""External collaborators of the selection model.

- Template sources (HTTP backend or JSON file)
- Project inspectors (marker-file detection)
- Template repository management
"""

from __future__ import annotations

__all__ = [
    "HttpTemplateSource",
    "JsonFileTemplateSource",
    "MarkerFileInspector",
    "ProjectInspector",
    "RepositoryChange",
    "RepositoryError",
    "RepositoryInfo",
    "RepositoryManager",
    "RepositoryOperation",
    "TemplateSource",
    "TemplateSourceAPIError",
    "TemplateSourceConnectionError",
    "TemplateSourceError",
    "TemplateSourceTimeoutError",
]

from typepicker.sources.inspector import MarkerFileInspector, ProjectInspector
from typepicker.sources.repositories import (
    RepositoryChange,
    RepositoryError,
    RepositoryInfo,
    RepositoryManager,
    RepositoryOperation,
)
from typepicker.sources.templates import (
    HttpTemplateSource,
    JsonFileTemplateSource,
    TemplateSource,
    TemplateSourceAPIError,
    TemplateSourceConnectionError,
    TemplateSourceError,
    TemplateSourceTimeoutError,
)
