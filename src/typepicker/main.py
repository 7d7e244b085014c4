"""Main CLI entry point for typepicker.

The CLI is a thin adapter over WizardSession: each command builds a session,
performs the requested picks and renders the resulting SelectionView.

Usage:
    typepicker types
    typepicker languages nodejs
    typepicker detect ./my-app
    typepicker select --path ./my-app --type nodejs --language typescript
    typepicker repos list
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path
from typing import Annotated, AsyncIterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from typepicker.cli import repos as repos_cli
from typepicker.config import TypePickerConfig, load_config
from typepicker.logging import (
    bind_wizard_context,
    get_logger,
    set_correlation_id,
    setup_logging,
)
from typepicker.selection.models import RebuildStatus
from typepicker.selection.state_machine import UnknownSelectionError
from typepicker.session import WizardSession
from typepicker.sources.inspector import MarkerFileInspector
from typepicker.sources.repositories import RepositoryManager
from typepicker.sources.templates import HttpTemplateSource, JsonFileTemplateSource

app = typer.Typer(
    name="typepicker",
    help="typepicker: choose a project type and language from a template catalogue",
    no_args_is_help=True,
)

app.add_typer(repos_cli.app, name="repos", help="Manage template repositories")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded typepicker configuration
        catalog: Offline JSON catalogue replacing the template backend
    """

    def __init__(self, config: TypePickerConfig, catalog: Path | None = None):
        self.config = config
        self.catalog = catalog

    @contextlib.asynccontextmanager
    async def open_session(self) -> AsyncIterator[WizardSession]:
        """Create a WizardSession wired to the configured collaborators."""
        async with contextlib.AsyncExitStack() as stack:
            if self.catalog is not None:
                source = JsonFileTemplateSource(self.catalog)
                repositories = None
            else:
                source = await stack.enter_async_context(
                    HttpTemplateSource(self.config.templates)
                )
                repositories = await stack.enter_async_context(
                    RepositoryManager(self.config.templates)
                )
            session = WizardSession(
                source, inspector=self.create_inspector(), repositories=repositories
            )
            bind_wizard_context(session.session_id)
            set_correlation_id(session.session_id)
            get_logger(__name__).info(
                "wizard_session_opened",
                catalog=str(self.catalog) if self.catalog else None,
                detection_enabled=session.inspector is not None,
            )
            try:
                yield session
            finally:
                set_correlation_id(None)

    def create_inspector(self) -> MarkerFileInspector | None:
        """Project inspector, None when detection is disabled in the config."""
        if not self.config.inspector.enabled:
            return None
        return MarkerFileInspector()


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: TypePickerConfig, catalog: Path | None = None) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config, catalog)
    return _app_context


def _exit_if_unavailable(status: RebuildStatus) -> None:
    if status is RebuildStatus.UNAVAILABLE:
        console.print("[red]Error:[/red] the template catalogue could not be loaded")
        raise typer.Exit(code=1)
    if status is RebuildStatus.EMPTY:
        console.print("[yellow]No project types are available[/yellow]")


@app.command()
def types() -> None:
    """List the selectable project types."""

    async def run() -> None:
        async with get_app_context().open_session() as session:
            outcome = await session.refresh()
            _exit_if_unavailable(outcome.status)
            view = session.view()

            table = Table(title="Project types")
            table.add_column("ID", style="cyan")
            table.add_column("Name")
            table.add_column("Languages", style="dim")
            for type_id in view.types:
                languages = session.model.languages_for(type_id)
                table.add_row(
                    type_id,
                    session.resolver.type_label(type_id),
                    ", ".join(sorted(languages)) or "-",
                )
            console.print(table)

    asyncio.run(run())


@app.command()
def languages(
    project_type: Annotated[str, typer.Argument(help="Project type id")],
) -> None:
    """List the languages offered for a project type."""

    async def run() -> None:
        async with get_app_context().open_session() as session:
            outcome = await session.refresh()
            _exit_if_unavailable(outcome.status)
            try:
                session.model.select_type(project_type)
            except UnknownSelectionError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(code=2)

            view = session.view()
            if not view.languages:
                console.print(f"[dim]{project_type} has no language variants[/dim]")
                return
            for language_id in view.languages:
                label = session.resolver.language_label(language_id)
                console.print(f"{language_id}\t{label}")

    asyncio.run(run())


@app.command()
def detect(
    path: Annotated[
        Path,
        typer.Argument(help="Project directory", exists=True, file_okay=False),
    ],
) -> None:
    """Guess the project type and language of a directory."""
    inspector = get_app_context().create_inspector()
    if inspector is None:
        console.print("[yellow]Project detection is disabled[/yellow]")
        raise typer.Exit(code=1)

    hint = asyncio.run(inspector.detect(path))
    if hint is None:
        console.print("[yellow]No project type detected[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[bold]Type:[/bold] {hint.type}")
    console.print(f"[bold]Language:[/bold] {hint.language or '-'}")


@app.command()
def select(
    path: Annotated[
        Optional[Path],
        typer.Option("--path", "-p", help="Existing project directory to inspect"),
    ] = None,
    project_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Project type id to select"),
    ] = None,
    language: Annotated[
        Optional[str],
        typer.Option("--language", "-l", help="Language id to select"),
    ] = None,
) -> None:
    """Resolve a type/language selection the way the wizard page does.

    The detection hint for --path seeds the selection; explicit --type and
    --language picks override it. Exits with 1 when no type is selected.
    """

    async def run() -> None:
        async with get_app_context().open_session() as session:
            outcome = await session.refresh()
            _exit_if_unavailable(outcome.status)
            if path is not None:
                await session.set_project_path(path)
            try:
                if project_type is not None:
                    session.model.select_type(project_type)
                if language is not None:
                    session.model.select_language(language)
            except UnknownSelectionError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(code=2)

            view = session.view()
            if view.language_picker_visible and view.selection.language is None:
                console.print(
                    f"[dim]Languages available:[/dim] {', '.join(view.languages)}"
                )
            if not view.can_finish:
                console.print("[yellow]No project type selected[/yellow]")
                raise typer.Exit(code=1)

            console.print(f"[bold]Type:[/bold] {session.model.get_type()}")
            console.print(f"[bold]Language:[/bold] {session.model.get_language()}")

    asyncio.run(run())


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    catalog: Annotated[
        Optional[Path],
        typer.Option(
            "--catalog",
            help="Read templates from a JSON file instead of the template backend",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context."""
    try:
        config = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    initialize_context(config, catalog)


if __name__ == "__main__":
    app()
