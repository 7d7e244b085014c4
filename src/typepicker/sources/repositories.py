"""Template repository management.

Template repositories are the catalogues the template backend aggregates.
Adding, removing, enabling or disabling one changes the template list, so a
successful change must be followed by a forced catalogue refresh (see
WizardSession.update_repositories).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from typepicker.config import TemplateSourceConfig

logger = structlog.get_logger(__name__)

REPOSITORIES_ENDPOINT = "/api/v1/templates/repositories"
BATCH_REPOSITORIES_ENDPOINT = "/api/v1/batch/templates/repositories"


class RepositoryError(Exception):
    """Raised when a repository operation fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RepositoryInfo(BaseModel):
    """A template repository known to the backend.

    Attributes:
        url: Location of the repository index
        name: Short repository name
        description: Repository description
        enabled: Whether its templates are listed
        protected: Built-in repositories cannot be removed
    """

    model_config = ConfigDict(extra="ignore")

    url: str
    name: str | None = None
    description: str | None = None
    enabled: bool = True
    protected: bool = False


class RepositoryOperation(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    ENABLE = "enable"
    DISABLE = "disable"


class RepositoryChange(BaseModel):
    """One pending change from the repository management dialog."""

    operation: RepositoryOperation
    url: str = Field(..., min_length=1)
    name: str | None = None
    description: str | None = None


class RepositoryManager:
    """Async client for the template repository endpoints."""

    def __init__(self, config: TemplateSourceConfig) -> None:
        self.config = config
        self._client: httpx.AsyncClient | None = None
        self.logger = logger.bind(component="RepositoryManager")

    async def __aenter__(self) -> RepositoryManager:
        self._client = httpx.AsyncClient(
            base_url=self.config.url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("RepositoryManager must be used as async context manager")
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            self.logger.error("repository_request_failed", method=method, error=str(e))
            raise RepositoryError(f"Repository request failed: {e}") from e

        if response.status_code >= 400:
            self.logger.warning(
                "repository_request_rejected",
                method=method,
                status_code=response.status_code,
            )
            raise RepositoryError(
                f"Repository request rejected: HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    async def list_repositories(self) -> list[RepositoryInfo]:
        """List the configured template repositories."""
        response = await self._request("GET", REPOSITORIES_ENDPOINT)
        try:
            payload = response.json()
            return [RepositoryInfo.model_validate(item) for item in payload]
        except (ValueError, TypeError, ValidationError) as e:
            raise RepositoryError(f"Invalid repository list: {e}") from e

    async def add_repository(
        self, url: str, name: str | None = None, description: str | None = None
    ) -> None:
        body = {"url": url, "name": name, "description": description}
        await self._request(
            "POST", REPOSITORIES_ENDPOINT, json={k: v for k, v in body.items() if v}
        )
        self.logger.info("repository_added", url=url, name=name)

    async def remove_repository(self, url: str) -> None:
        await self._request("DELETE", REPOSITORIES_ENDPOINT, json={"url": url})
        self.logger.info("repository_removed", url=url)

    async def set_enabled(self, url: str, enabled: bool) -> None:
        await self._set_enabled_batch({url: enabled})

    async def _set_enabled_batch(self, states: dict[str, bool]) -> None:
        body = [
            {"op": "enable", "url": url, "value": "true" if enabled else "false"}
            for url, enabled in states.items()
        ]
        response = await self._request("PATCH", BATCH_REPOSITORIES_ENDPOINT, json=body)

        # 207 Multi-Status carries one status per operation
        if response.status_code == 207:
            try:
                failed = [
                    item.get("requestedOperation", {}).get("url")
                    for item in response.json()
                    if int(item.get("status", 200)) >= 400
                ]
            except (ValueError, TypeError, AttributeError) as e:
                raise RepositoryError(f"Invalid batch response: {e}") from e
            if failed:
                raise RepositoryError(f"Failed to update repositories: {failed}")
        self.logger.info("repositories_toggled", states=states)

    async def apply_changes(self, changes: list[RepositoryChange]) -> bool:
        """Apply pending repository changes in order.

        Enable/disable changes are sent as one batch after adds and removes.

        Args:
            changes: Changes collected by the repository management UI

        Returns:
            True if at least one change was applied

        Raises:
            RepositoryError: On the first change the backend rejects
        """
        if not changes:
            return False

        toggles: dict[str, bool] = {}
        for change in changes:
            if change.operation is RepositoryOperation.ADD:
                await self.add_repository(change.url, change.name, change.description)
            elif change.operation is RepositoryOperation.REMOVE:
                await self.remove_repository(change.url)
            else:
                toggles[change.url] = change.operation is RepositoryOperation.ENABLE

        if toggles:
            await self._set_enabled_batch(toggles)

        self.logger.info("repository_changes_applied", count=len(changes))
        return True
