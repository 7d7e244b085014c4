"""Data models for project type and language selection.

Template records come from the template backend, detection hints come from
inspecting a project directory, and the selection is the single type and
language currently checked in the wizard.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Reserved id returned when no type or language is available.
UNKNOWN = "unknown"

# Project type id -> language ids tagged on that type's templates.
TypeLanguageIndex = Mapping[str, frozenset[str]]


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class TemplateRecord(BaseModel):
    """A project template as listed by the template backend.

    Attributes:
        project_type: Project type id the template belongs to
        language: Language id, None when the template carries no language tag
        label: Human-readable template name
        description: Template description
        url: Location of the template content
        source: Name of the repository that provided the template
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    project_type: str = Field(..., alias="projectType", min_length=1)
    language: str | None = Field(default=None)
    label: str | None = Field(default=None)
    description: str | None = Field(default=None)
    url: str | None = Field(default=None)
    source: str | None = Field(default=None)

    @field_validator("language")
    @classmethod
    def empty_language_is_none(cls, v: str | None) -> str | None:
        """An empty language tag means the template has no language."""
        return _blank_to_none(v)


class DetectedHint(BaseModel):
    """Best-effort guess of a project's type and language."""

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    language: str | None = None

    @field_validator("type", "language")
    @classmethod
    def empty_is_none(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class Selection(BaseModel):
    """The currently checked project type and language."""

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    language: str | None = None


class RebuildStatus(str, Enum):
    """Result of rebuilding the type/language index.

    - READY: templates were fetched and at least one type is available
    - EMPTY: the catalogue was reachable but lists no templates
    - UNAVAILABLE: the template source could not be reached
    """

    READY = "ready"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"


class RebuildOutcome(BaseModel):
    """Outcome of SelectionModel.rebuild_index."""

    model_config = ConfigDict(frozen=True)

    status: RebuildStatus
    index: dict[str, frozenset[str]] = Field(default_factory=dict)

    @property
    def available(self) -> bool:
        return self.status is not RebuildStatus.UNAVAILABLE


class SelectionView(BaseModel):
    """Snapshot of everything a renderer needs after a model update.

    Attributes:
        types: Selectable project type ids in display order
        languages: Language ids for the selected type in display order
        language_picker_visible: Whether the user must choose a language
        selection: Current type and language
        can_finish: Whether the wizard page may complete
        condition: User-visible condition, "no_project_types" or
            "source_unavailable", None when the catalogue is usable
    """

    model_config = ConfigDict(frozen=True)

    types: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    language_picker_visible: bool = False
    selection: Selection = Field(default_factory=Selection)
    can_finish: bool = False
    condition: str | None = None
