"""Project type/language selection state machine.

This module owns the type -> languages index derived from the template
catalogue and the single type/language selection of one wizard session.

Rules enforced on every mutation:
- At most one type and one language are selected at a time.
- A language is only kept while it belongs to the selected type's language set.
- Types with zero or one language never show a language picker; the language
  is derived automatically (absent, or the single language).
- A detection hint only seeds the selection while the user has made no
  explicit pick for the current project path.

The model performs no I/O and holds no lock. Callers must serialize calls,
typically by running them on a single event loop (see typepicker.session).
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Iterable

import structlog

from typepicker.selection.display import DisplayNameResolver, sort_for_display
from typepicker.selection.models import (
    UNKNOWN,
    DetectedHint,
    RebuildOutcome,
    RebuildStatus,
    Selection,
    SelectionView,
    TemplateRecord,
)

logger = structlog.get_logger(__name__)


class UnknownSelectionError(ValueError):
    """Raised when a type or language outside the current index is picked.

    Attributes:
        kind: "type" or "language"
        value: The rejected id
    """

    def __init__(self, kind: str, value: str, project_type: str | None = None):
        self.kind = kind
        self.value = value
        self.project_type = project_type
        msg = f"Unknown project {kind}: {value}"
        if project_type:
            msg += f" for type {project_type}"
        super().__init__(msg)


def build_type_index(templates: Iterable[TemplateRecord]) -> dict[str, frozenset[str]]:
    """Group templates by project type and collect their language tags.

    Every project type seen gets a key, including types whose templates carry
    no language (they map to an empty set).

    Args:
        templates: Template records from the template source

    Returns:
        Mapping of project type id to the set of its language ids
    """
    grouped: dict[str, set[str]] = {}
    for template in templates:
        languages = grouped.setdefault(template.project_type, set())
        if template.language:
            languages.add(template.language)
    return {project_type: frozenset(langs) for project_type, langs in grouped.items()}


class SelectionModel:
    """Single-type/single-language selection over a template catalogue.

    Example:
        >>> model = SelectionModel()
        >>> outcome = model.rebuild_index([TemplateRecord(project_type="docker")])
        >>> selection = model.select_type("docker")
        >>> model.can_finish()
        True
    """

    def __init__(self) -> None:
        self._index: dict[str, frozenset[str]] = {}
        self._status: RebuildStatus | None = None
        self._selection = Selection()
        self._project_path: Path | None = None
        self._hint: DetectedHint | None = None
        self._explicit_pick = False
        self.logger = logger.bind(component="SelectionModel")

    # -- state accessors ---------------------------------------------------

    @property
    def available(self) -> bool:
        """False after the template source could not be reached."""
        return self._status is not RebuildStatus.UNAVAILABLE

    @property
    def status(self) -> RebuildStatus | None:
        """Status of the last rebuild, None before the first one."""
        return self._status

    @property
    def index(self) -> dict[str, frozenset[str]]:
        """Copy of the current index; empty while the catalogue is unavailable."""
        if not self.available:
            return {}
        return dict(self._index)

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def project_path(self) -> Path | None:
        return self._project_path

    @property
    def has_explicit_pick(self) -> bool:
        return self._explicit_pick

    @property
    def language_picker_active(self) -> bool:
        """True when the selected type offers a choice between languages."""
        return len(self.languages_for(self._selection.type)) > 1

    def languages_for(self, project_type: str | None) -> frozenset[str]:
        if project_type is None or not self.available:
            return frozenset()
        return self._index.get(project_type, frozenset())

    def type_ids(self, resolver: DisplayNameResolver | None = None) -> list[str]:
        """Selectable type ids, in display order when a resolver is given."""
        ids = self.index.keys()
        if resolver is None:
            return sorted(ids)
        return sort_for_display(ids, resolver.type_label)

    def language_ids(self, resolver: DisplayNameResolver | None = None) -> list[str]:
        """Language ids of the selected type, in display order when a resolver is given."""
        ids = self.languages_for(self._selection.type)
        if resolver is None:
            return sorted(ids)
        return sort_for_display(ids, resolver.language_label)

    # -- mutations -----------------------------------------------------------

    def rebuild_index(self, templates: Iterable[TemplateRecord] | None) -> RebuildOutcome:
        """Replace the index from a fresh template list and revalidate the selection.

        Args:
            templates: Templates from the source, or None when the source
                could not be reached

        Returns:
            RebuildOutcome with READY, EMPTY or UNAVAILABLE status
        """
        if templates is None:
            self._status = RebuildStatus.UNAVAILABLE
            # The previous selection is kept; a later successful rebuild revalidates it.
            self.logger.warning(
                "template_catalogue_unavailable",
                selected_type=self._selection.type,
            )
            return RebuildOutcome(status=RebuildStatus.UNAVAILABLE)

        self._index = build_type_index(templates)
        self._status = RebuildStatus.READY if self._index else RebuildStatus.EMPTY

        if self._status is RebuildStatus.EMPTY:
            self.logger.info("template_catalogue_empty")
        else:
            self.logger.info(
                "type_index_rebuilt",
                type_count=len(self._index),
                project_types=sorted(self._index),
            )

        self._revalidate()
        return RebuildOutcome(status=self._status, index=dict(self._index))

    def change_project_path(self, path: str | PathLike[str] | None) -> None:
        """Start a new detection epoch for a project directory.

        Forgets the stored hint and the explicit-pick flag of the previous
        path. The current selection is left as is until a hint or pick arrives.
        """
        self._project_path = Path(path) if path is not None else None
        self._hint = None
        self._explicit_pick = False
        self.logger.debug("project_path_changed", project_path=str(self._project_path))

    def apply_detected_hint(
        self,
        hint: DetectedHint | None,
        path: str | PathLike[str] | None = None,
    ) -> bool:
        """Seed the selection from a detection hint.

        Args:
            hint: Detected type and language, None when detection found nothing
            path: Path the hint was detected for; hints for any other path
                than the current one are stale and discarded

        Returns:
            True if the selection changed
        """
        if path is not None and Path(path) != self._project_path:
            self.logger.info(
                "stale_detection_discarded",
                hint_path=str(path),
                current_path=str(self._project_path),
            )
            return False

        self._hint = hint
        if hint is None:
            return False

        if self._explicit_pick:
            self.logger.debug(
                "detected_hint_overridden",
                hint_type=hint.type,
                selected_type=self._selection.type,
            )
            return False

        return self._apply_hint(hint)

    def select_type(self, chosen_type: str | None) -> Selection:
        """Check a project type (or uncheck with None).

        Checking a type unchecks any other. The language is derived from the
        type's language set: absent for none, automatic for one, and kept
        from the previous selection for several when it is still offered.

        Raises:
            UnknownSelectionError: If chosen_type is not in the index
        """
        if chosen_type is not None and chosen_type not in self.index:
            raise UnknownSelectionError("type", chosen_type)

        self._explicit_pick = True
        if chosen_type is None:
            self._set_selection(None, None)
        else:
            self._resolve_type(chosen_type, self._selection.language)

        self.logger.info(
            "project_type_selected",
            project_type=self._selection.type,
            language=self._selection.language,
            language_picker_active=self.language_picker_active,
        )
        return self._selection

    def select_language(self, chosen_language: str | None) -> Selection:
        """Check a language of the selected type (or uncheck with None).

        Unchecking only clears the language; the type is untouched.

        Raises:
            UnknownSelectionError: If no type is selected or the language is
                not offered by the selected type
        """
        project_type = self._selection.type
        if chosen_language is not None and (
            chosen_language not in self.languages_for(project_type)
        ):
            raise UnknownSelectionError("language", chosen_language, project_type)

        self._explicit_pick = True
        self._set_selection(project_type, chosen_language)
        self.logger.info(
            "project_language_selected",
            project_type=project_type,
            language=chosen_language,
        )
        return self._selection

    # -- queries -------------------------------------------------------------

    def can_finish(self) -> bool:
        return self._selection.type is not None

    def get_type(self) -> str:
        """Selected type id, or UNKNOWN if called without a selection."""
        if self._selection.type is None:
            # Callers gate on can_finish(); reaching this is a bug upstream.
            self.logger.error("project_type_unset_on_read")
            return UNKNOWN
        return self._selection.type

    def get_language(self) -> str:
        """Selected language id, or UNKNOWN since the language is optional."""
        if self._selection.language is None:
            return UNKNOWN
        return self._selection.language

    def view(self, resolver: DisplayNameResolver | None = None) -> SelectionView:
        """Snapshot for renderers, rebuilt from the current state."""
        condition = None
        if self._status is RebuildStatus.UNAVAILABLE:
            condition = "source_unavailable"
        elif self._status is RebuildStatus.EMPTY:
            condition = "no_project_types"

        return SelectionView(
            types=self.type_ids(resolver),
            languages=self.language_ids(resolver),
            language_picker_visible=self.language_picker_active,
            selection=self._selection,
            can_finish=self.can_finish(),
            condition=condition,
        )

    # -- internals -----------------------------------------------------------

    def _resolve_type(self, project_type: str, language: str | None) -> None:
        languages = self._index.get(project_type, frozenset())
        if len(languages) == 1:
            (language,) = languages
        elif not languages or language not in languages:
            language = None
        self._set_selection(project_type, language)

    def _apply_hint(self, hint: DetectedHint) -> bool:
        if hint.type is None or hint.type not in self.index:
            self.logger.info(
                "detected_hint_ignored",
                hint_type=hint.type,
                known_types=sorted(self.index),
            )
            return False

        previous = self._selection
        self._resolve_type(hint.type, hint.language)
        self.logger.info(
            "detected_hint_applied",
            project_type=hint.type,
            language=self._selection.language,
            hint_language=hint.language,
        )
        return self._selection != previous

    def _revalidate(self) -> None:
        current = self._selection
        if current.type is not None and current.type in self._index:
            self._resolve_type(current.type, current.language)
            return

        if not self._explicit_pick and self._hint is not None:
            if self._apply_hint(self._hint):
                return
            if current.type is None:
                return

        if current.type is not None:
            self.logger.info("selected_type_removed", project_type=current.type)
            self._set_selection(None, None)

    def _set_selection(self, project_type: str | None, language: str | None) -> None:
        self._selection = Selection(type=project_type, language=language)
