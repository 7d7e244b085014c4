"""Project type and language selection.

Example:
    ```python
    from typepicker.selection import SelectionModel, TemplateRecord

    model = SelectionModel()
    model.rebuild_index([
        TemplateRecord(project_type="nodejs", language="javascript"),
        TemplateRecord(project_type="nodejs", language="typescript"),
        TemplateRecord(project_type="docker"),
    ])
    model.select_type("nodejs")
    model.select_language("typescript")
    assert model.get_language() == "typescript"
    ```
"""

from __future__ import annotations

__all__ = [
    "UNKNOWN",
    "CatalogDisplayNames",
    "DetectedHint",
    "DisplayNameResolver",
    "ProjectLanguage",
    "ProjectType",
    "RebuildOutcome",
    "RebuildStatus",
    "Selection",
    "SelectionModel",
    "SelectionView",
    "TemplateRecord",
    "TypeLanguageIndex",
    "UnknownSelectionError",
    "build_type_index",
    "sort_for_display",
]

from typepicker.selection.display import (
    CatalogDisplayNames,
    DisplayNameResolver,
    ProjectLanguage,
    ProjectType,
    sort_for_display,
)
from typepicker.selection.models import (
    UNKNOWN,
    DetectedHint,
    RebuildOutcome,
    RebuildStatus,
    Selection,
    SelectionView,
    TemplateRecord,
    TypeLanguageIndex,
)
from typepicker.selection.state_machine import (
    SelectionModel,
    UnknownSelectionError,
    build_type_index,
)
