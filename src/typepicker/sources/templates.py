"""Template sources for the project type catalogue.

A template source returns the current list of template records. The HTTP
source talks to the template backend and retries transient failures with
exponential backoff; the JSON file source reads an offline catalogue.

Example usage:
    >>> from typepicker.config import TemplateSourceConfig
    >>> async with HttpTemplateSource(TemplateSourceConfig()) as source:
    ...     templates = await source.fetch_templates(force_refresh=True)
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from typepicker.config import TemplateSourceConfig
from typepicker.selection.models import TemplateRecord

logger = structlog.get_logger(__name__)

TEMPLATES_ENDPOINT = "/api/v1/templates"


class TemplateSourceError(Exception):
    """Base exception for template source failures."""

    pass


class TemplateSourceTimeoutError(TemplateSourceError):
    """Raised when the template backend does not answer in time."""

    pass


class TemplateSourceConnectionError(TemplateSourceError):
    """Raised when the template backend cannot be reached."""

    pass


class TemplateSourceAPIError(TemplateSourceError):
    """Raised when the backend answers with an error or malformed payload."""

    pass


class TemplateSource(Protocol):
    """Protocol for template catalogue providers."""

    async def fetch_templates(self, force_refresh: bool = False) -> list[TemplateRecord]:
        """Return the current template list.

        Raises:
            TemplateSourceError: If the catalogue could not be obtained
        """
        ...


def parse_templates(payload: Any) -> list[TemplateRecord]:
    """Validate a JSON template array into TemplateRecord instances.

    Raises:
        TemplateSourceAPIError: If the payload is not a list of templates
    """
    if not isinstance(payload, list):
        raise TemplateSourceAPIError(
            f"Invalid template payload: expected a list, got {type(payload).__name__}"
        )
    try:
        return [TemplateRecord.model_validate(item) for item in payload]
    except ValidationError as e:
        raise TemplateSourceAPIError(f"Invalid template entry: {e}") from e


class HttpTemplateSource:
    """Async client for the template backend.

    The last successful response is cached; force_refresh bypasses the cache,
    which callers do after the template repositories changed.

    Attributes:
        config: Template source configuration
    """

    def __init__(self, config: TemplateSourceConfig, initial_backoff: float = 0.5) -> None:
        self.config = config
        self.initial_backoff = initial_backoff
        self._client: httpx.AsyncClient | None = None
        self._cache: list[TemplateRecord] | None = None

    async def __aenter__(self) -> HttpTemplateSource:
        self._client = httpx.AsyncClient(
            base_url=self.config.url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("HttpTemplateSource must be used as async context manager")
        return self._client

    async def fetch_templates(self, force_refresh: bool = False) -> list[TemplateRecord]:
        """Fetch the template list from the backend.

        Args:
            force_refresh: Ignore the cached list and query the backend

        Returns:
            List of template records, possibly empty

        Raises:
            TemplateSourceTimeoutError: If requests time out after all retries
            TemplateSourceConnectionError: If the backend is unreachable after all retries
            TemplateSourceAPIError: If the backend returns an error or bad payload
        """
        if self._cache is not None and not force_refresh:
            logger.debug("template_cache_hit", count=len(self._cache))
            return list(self._cache)

        client = self._get_client()
        params = {"showEnabledOnly": "true"} if self.config.show_enabled_only else None
        max_retries = self.config.max_retries

        for attempt in range(max_retries + 1):
            backoff = self.initial_backoff * (2**attempt)
            try:
                response = await client.get(TEMPLATES_ENDPOINT, params=params)

                if response.status_code == 200:
                    templates = parse_templates(response.json())
                    self._cache = templates
                    logger.info(
                        "templates_fetched",
                        url=self.config.url,
                        count=len(templates),
                        attempt=attempt + 1,
                        force_refresh=force_refresh,
                    )
                    return list(templates)

                if 500 <= response.status_code < 600 and attempt < max_retries:
                    logger.warning(
                        "template_server_error_retry",
                        status_code=response.status_code,
                        attempt=attempt + 1,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue

                raise TemplateSourceAPIError(
                    f"Template request failed: HTTP {response.status_code}: {response.text}"
                )

            except httpx.TimeoutException as e:
                if attempt < max_retries:
                    logger.warning(
                        "template_timeout_retry",
                        attempt=attempt + 1,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                logger.error(
                    "template_timeout_exhausted",
                    url=self.config.url,
                    max_retries=max_retries,
                )
                raise TemplateSourceTimeoutError(
                    f"Template request timed out after {max_retries} retries"
                ) from e

            except httpx.TransportError as e:
                if attempt < max_retries:
                    logger.warning(
                        "template_connection_error_retry",
                        attempt=attempt + 1,
                        backoff_seconds=backoff,
                        error=str(e),
                    )
                    await asyncio.sleep(backoff)
                    continue
                logger.error(
                    "template_connection_exhausted",
                    url=self.config.url,
                    max_retries=max_retries,
                )
                raise TemplateSourceConnectionError(
                    f"Failed to connect to template backend at {self.config.url}"
                ) from e

            except ValueError as e:
                # response.json() on a non-JSON body
                raise TemplateSourceAPIError(f"Invalid template response: {e}") from e

        raise TemplateSourceError("Unexpected retry loop exit")


class JsonFileTemplateSource:
    """Template source reading a JSON array of templates from disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    async def fetch_templates(self, force_refresh: bool = False) -> list[TemplateRecord]:
        try:
            text = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except OSError as e:
            raise TemplateSourceConnectionError(
                f"Cannot read template catalogue {self.path}: {e}"
            ) from e
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise TemplateSourceAPIError(f"Invalid JSON in {self.path}: {e}") from e

        templates = parse_templates(payload)
        logger.info("templates_loaded", path=str(self.path), count=len(templates))
        return templates
