"""Template repository CLI commands.

This module provides commands for listing, adding, removing, enabling and
disabling template repositories. Every successful change forces a refresh
of the template catalogue.
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from typepicker.sources.repositories import (
    RepositoryChange,
    RepositoryError,
    RepositoryOperation,
)

app = typer.Typer(help="Template repository commands")
console = Console()


def _require_repositories(session) -> None:
    if session.repositories is None:
        console.print("[red]Error:[/red] repositories cannot be managed with --catalog")
        raise typer.Exit(code=1)


@app.command("list")
def list_repositories() -> None:
    """List configured template repositories."""
    from typepicker.main import get_app_context

    async def run() -> None:
        async with get_app_context().open_session() as session:
            _require_repositories(session)
            try:
                repositories = await session.repositories.list_repositories()
            except RepositoryError as e:
                console.print(f"[red]Error listing repositories:[/red] {e}")
                raise typer.Exit(code=1)

            if not repositories:
                console.print("[yellow]No template repositories configured[/yellow]")
                return

            table = Table(title="Template repositories")
            table.add_column("Name", style="cyan")
            table.add_column("URL")
            table.add_column("Enabled")
            table.add_column("Protected", style="dim")
            for repo in repositories:
                table.add_row(
                    repo.name or "-",
                    repo.url,
                    "yes" if repo.enabled else "no",
                    "yes" if repo.protected else "no",
                )
            console.print(table)

    asyncio.run(run())


def _apply(change: RepositoryChange) -> None:
    from typepicker.main import get_app_context

    async def run() -> None:
        async with get_app_context().open_session() as session:
            _require_repositories(session)
            try:
                await session.update_repositories([change])
            except RepositoryError as e:
                console.print(f"[red]Error updating repositories:[/red] {e}")
                raise typer.Exit(code=1)

            view = session.view()
            if view.condition == "source_unavailable":
                console.print(
                    "[yellow]Repository updated, but the template list could not be refreshed[/yellow]"
                )
                return
            console.print(
                f"[green]Repository {change.operation.value} applied[/green] "
                f"({len(view.types)} project types available)"
            )

    asyncio.run(run())


@app.command()
def add(
    url: Annotated[str, typer.Argument(help="Repository index URL")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Repository name")] = None,
    description: Annotated[
        Optional[str], typer.Option("--description", "-d", help="Repository description")
    ] = None,
) -> None:
    """Add a template repository."""
    _apply(
        RepositoryChange(
            operation=RepositoryOperation.ADD, url=url, name=name, description=description
        )
    )


@app.command()
def remove(url: Annotated[str, typer.Argument(help="Repository index URL")]) -> None:
    """Remove a template repository."""
    _apply(RepositoryChange(operation=RepositoryOperation.REMOVE, url=url))


@app.command()
def enable(url: Annotated[str, typer.Argument(help="Repository index URL")]) -> None:
    """Enable a template repository."""
    _apply(RepositoryChange(operation=RepositoryOperation.ENABLE, url=url))


@app.command()
def disable(url: Annotated[str, typer.Argument(help="Repository index URL")]) -> None:
    """Disable a template repository."""
    _apply(RepositoryChange(operation=RepositoryOperation.DISABLE, url=url))
