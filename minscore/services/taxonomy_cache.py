"""Remote taxonomy cache: TTL freshness, bounded retry, in-flight coalescing.

Entries are keyed by (ResourceKind, project_id). At most one request per key
is in flight at any time: the request task is registered on the entry before
the first await, and callers arriving while it runs join it. Failures never
propagate to callers; they come back on FetchResult with any previously
cached items marked stale.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from minscore.config import get_settings
from minscore.context_api.base import TaxonomySource
from minscore.context_api.client import ContextApiClient
from minscore.schemas.taxonomy import RawDimension, RawTrait, ResourceKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[ResourceKind, str]
FetchFn = Callable[[], Awaitable[Sequence[Any]]]
SourceFactory = Callable[[str, str], TaxonomySource]


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a cache read.

    is_stale is True only when the latest fetch failed and items are the
    previously cached value. disabled is True when credentials were missing
    and no request was made.
    """

    items: tuple[T, ...] = ()
    is_stale: bool = False
    error: Optional[Exception] = None
    disabled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CacheEntry:
    value: Optional[tuple[Any, ...]] = None
    fetched_at: Optional[float] = None
    in_flight: Optional[asyncio.Task] = None
    in_flight_epoch: int = 0
    last_error: Optional[Exception] = None
    epoch: int = 0


class RemoteTaxonomyCache:
    """Get-or-fetch cache for the dimension and trait collections of projects."""

    def __init__(
        self,
        ttl: float | None = None,
        max_retries: int | None = None,
        retry_backoff: float | None = None,
        source_factory: SourceFactory = ContextApiClient,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self.ttl = ttl if ttl is not None else settings.taxonomy_cache_ttl
        self.max_retries = (
            max_retries if max_retries is not None else settings.taxonomy_max_retries
        )
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else settings.taxonomy_retry_backoff
        )
        self._source_factory = source_factory
        self._clock = clock
        self._sleep = sleep
        self._entries: dict[CacheKey, CacheEntry] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_dimensions(self, project_id: str, api_key: str) -> FetchResult[RawDimension]:
        """Return the dimensions of a project, fetching when missing or expired."""
        if not project_id or not api_key:
            return FetchResult(disabled=True)
        return await self.get_or_fetch(
            ResourceKind.DIMENSIONS,
            project_id,
            lambda: self._source_factory(project_id, api_key).get_dimensions(),
        )

    async def fetch_traits(self, project_id: str, api_key: str) -> FetchResult[RawTrait]:
        """Return the discrete traits of a project, fetching when missing or expired."""
        if not project_id or not api_key:
            return FetchResult(disabled=True)
        return await self.get_or_fetch(
            ResourceKind.TRAITS,
            project_id,
            lambda: self._source_factory(project_id, api_key).get_traits(),
        )

    async def get_or_fetch(
        self,
        kind: ResourceKind,
        project_id: str,
        fetch: FetchFn,
    ) -> FetchResult:
        """Return the cached collection for (kind, project_id) or fetch it.

        Callers arriving while a fetch for the key is running join it. A fetch
        started before an invalidate() is awaited but not joined; the caller
        then starts a fresh one.
        """
        key = (kind, project_id)
        entry = self._entries.setdefault(key, CacheEntry())
        while True:
            if entry.in_flight is None:
                if self._is_fresh(entry):
                    logger.debug("Cache hit for %s/%s", kind.value, project_id)
                    return FetchResult(items=entry.value or ())
                entry.in_flight_epoch = entry.epoch
                entry.in_flight = asyncio.create_task(self._fetch_with_retry(key, entry, fetch))
            else:
                logger.debug("Joining in-flight %s fetch for %s", kind.value, project_id)

            task = entry.in_flight
            if entry.in_flight_epoch != entry.epoch:
                await asyncio.shield(task)
                continue
            return await asyncio.shield(task)

    def invalidate(self, project_id: str | None = None) -> None:
        """Expire cached entries (all, or one project's) and drop in-flight results."""
        for (kind, pid), entry in self._entries.items():
            if project_id is not None and pid != project_id:
                continue
            entry.epoch += 1
            entry.fetched_at = None
            logger.debug("Invalidated %s cache for %s", kind.value, pid)

    def get_entry(self, kind: ResourceKind, project_id: str) -> CacheEntry | None:
        return self._entries.get((kind, project_id))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_fresh(self, entry: CacheEntry) -> bool:
        if entry.value is None or entry.fetched_at is None:
            return False
        return self._clock() - entry.fetched_at < self.ttl

    async def _fetch_with_retry(
        self,
        key: CacheKey,
        entry: CacheEntry,
        fetch: FetchFn,
    ) -> FetchResult:
        kind, project_id = key
        epoch = entry.in_flight_epoch
        attempts = self.max_retries + 1
        last_error: Exception | None = None
        try:
            for attempt in range(attempts):
                try:
                    items = tuple(await fetch())
                except Exception as exc:
                    last_error = exc
                    if attempt < attempts - 1:
                        wait = self.retry_backoff * (2**attempt)
                        logger.warning(
                            "%s fetch attempt %d/%d failed for %s: %s – retrying in %.1fs",
                            kind.value,
                            attempt + 1,
                            attempts,
                            project_id,
                            exc,
                            wait,
                        )
                        await self._sleep(wait)
                    continue

                if entry.epoch == epoch:
                    entry.value = items
                    entry.fetched_at = self._clock()
                    entry.last_error = None
                else:
                    logger.debug(
                        "Discarding %s result for %s: cache invalidated during fetch",
                        kind.value,
                        project_id,
                    )
                return FetchResult(items=items)

            logger.error(
                "%s fetch failed for %s after %d attempts: %s",
                kind.value,
                project_id,
                attempts,
                last_error,
            )
            entry.last_error = last_error
            return FetchResult(
                items=entry.value or (),
                is_stale=entry.value is not None,
                error=last_error,
            )
        finally:
            entry.in_flight = None


@lru_cache(maxsize=1)
def get_taxonomy_cache() -> RemoteTaxonomyCache:
    """Return the process-wide taxonomy cache."""
    return RemoteTaxonomyCache()
