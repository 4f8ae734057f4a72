"""Context API client using httpx async client.

One AsyncClient per request. Errors are logged and raised as
TaxonomyFetchError; the caller decides whether to retry.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from minscore.config import get_settings
from minscore.context_api.base import TaxonomySource
from minscore.errors import TaxonomyFetchError
from minscore.schemas.taxonomy import RawDimension, RawTrait, ResourceKind

logger = logging.getLogger(__name__)

USER_AGENT = "MinScoreCriteria/0.1 (taxonomy-client)"
DIMENSIONS_PATH = "/api/v2/dimension"
TRAITS_PATH = "/api/v2/quirk"

# Traits are published upstream as "quirks"
_TRAIT_KEYS = ("traits", "quirks")


class ContextApiClient(TaxonomySource):
    """Client for the dimensions and traits of one project."""

    def __init__(
        self,
        project_id: str,
        api_key: str,
        api_host: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._project_id = project_id
        self._api_key = api_key
        self.api_host = (api_host or settings.uniform_api_host).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.context_api_timeout

    @property
    def project_id(self) -> str:
        return self._project_id

    async def get_dimensions(self) -> list[RawDimension]:
        data = await self._get_json(ResourceKind.DIMENSIONS, DIMENSIONS_PATH)
        items = data.get("dimensions") or []
        return self._parse(ResourceKind.DIMENSIONS, RawDimension, items)

    async def get_traits(self) -> list[RawTrait]:
        data = await self._get_json(ResourceKind.TRAITS, TRAITS_PATH)
        items: Any = []
        for key in _TRAIT_KEYS:
            if data.get(key):
                items = data[key]
                break
        return self._parse(ResourceKind.TRAITS, RawTrait, items)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get_json(self, kind: ResourceKind, path: str) -> dict[str, Any]:
        url = f"{self.api_host}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT, "x-api-key": self._api_key},
            ) as client:
                response = await client.get(url, params={"projectId": self._project_id})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("HTTP %s fetching %s for project %s", status, kind.value, self._project_id)
            raise TaxonomyFetchError(
                kind.value, self._project_id, f"HTTP {status}", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch %s for project %s: %s", kind.value, self._project_id, exc)
            raise TaxonomyFetchError(kind.value, self._project_id, str(exc)) from exc
        except ValueError as exc:
            logger.error("Invalid JSON in %s response for project %s", kind.value, self._project_id)
            raise TaxonomyFetchError(kind.value, self._project_id, "invalid JSON") from exc

        if not isinstance(data, dict):
            raise TaxonomyFetchError(kind.value, self._project_id, "response is not an object")
        return data

    def _parse(self, kind: ResourceKind, model: type, items: Any) -> list:
        if not isinstance(items, list):
            raise TaxonomyFetchError(kind.value, self._project_id, "collection is not a list")
        try:
            return [model.model_validate(item) for item in items]
        except ValidationError as exc:
            logger.error("Malformed %s record for project %s: %s", kind.value, self._project_id, exc)
            raise TaxonomyFetchError(kind.value, self._project_id, "malformed record") from exc
