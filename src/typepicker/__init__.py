"""typepicker - project type and language selection for new-project wizards.

This package derives the selectable project types and languages from a
template catalogue, keeps a consistent single type/language selection as the
catalogue is refreshed or a project directory is inspected, and exposes a
small CLI over that model.
"""

__version__ = "0.1.0"
