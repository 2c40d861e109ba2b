"""Per-authority discovery document cache with time-bounded entries.

One instance is created at startup and passed to consumers. Each authority
moves Empty -> Fetching -> Cached -> Expired -> Fetching. Concurrent callers
for the same authority share a single in-flight fetch; a failed fetch is
never cached.
"""

import asyncio
import logging
from datetime import timedelta

import httpx

from clientauth.core.clock import Clock, utc_now
from clientauth.core.errors import DiscoveryError
from clientauth.core.settings import DiscoverySettings
from clientauth.oidc.discovery import (
    DiscoveryDocument,
    fetch_discovery_metadata,
    normalize_authority,
)

logger = logging.getLogger(__name__)


class DiscoveryDocumentCache:
    """Fetches and caches OIDC discovery documents per authority."""

    def __init__(
        self,
        settings: DiscoverySettings | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._settings = settings or DiscoverySettings()
        self._client = client
        self._clock = clock
        self._durations: dict[str, timedelta] = {}
        self._entries: dict[str, DiscoveryDocument] = {}
        self._inflight: dict[str, asyncio.Task[DiscoveryDocument]] = {}

    def configure(self, authority: str, cache_duration: timedelta) -> None:
        """Override the cache duration for one authority."""
        if cache_duration < timedelta(0):
            raise ValueError("Cache duration must not be negative")
        self._durations[normalize_authority(authority)] = cache_duration

    def cache_duration(self, authority: str) -> timedelta:
        key = normalize_authority(authority)
        configured = self._durations.get(key)
        if configured is not None:
            return configured
        return timedelta(seconds=self._settings.cache_duration_for(key))

    def invalidate(self, authority: str) -> None:
        """Drop the cached document so the next get re-fetches."""
        self._entries.pop(normalize_authority(authority), None)

    def clear(self) -> None:
        self._entries.clear()

    async def get(
        self, authority: str, timeout: float | None = None
    ) -> DiscoveryDocument:
        """Return a fresh document, fetching at most once per authority.

        ``timeout`` bounds this caller's wait only; an in-flight fetch shared
        with other callers keeps running.
        """
        key = normalize_authority(authority)
        cached = self._entries.get(key)
        if cached is not None and cached.is_fresh(self._clock()):
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._refresh(key))
            self._inflight[key] = task
            task.add_done_callback(lambda done, k=key: self._finish(k, done))
        return await asyncio.wait_for(asyncio.shield(task), timeout)

    def _finish(self, key: str, task: asyncio.Task[DiscoveryDocument]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception retrieved when every waiter has gone away.
            task.exception()

    async def _refresh(self, key: str) -> DiscoveryDocument:
        logger.debug("Fetching discovery document for %s", key)
        try:
            if self._client is not None:
                metadata = await fetch_discovery_metadata(self._client, key)
            else:
                async with httpx.AsyncClient(
                    timeout=self._settings.timeout_seconds
                ) as client:
                    metadata = await fetch_discovery_metadata(client, key)
        except DiscoveryError as exc:
            self._entries.pop(key, None)
            logger.error("Could not load discovery document for %s: %s", key, exc)
            raise

        fetched_at = self._clock()
        document = DiscoveryDocument(
            authority=key,
            fetched_at=fetched_at,
            expires_at=fetched_at + self.cache_duration(key),
            **metadata.model_dump(),
        )
        self._entries[key] = document
        logger.info(
            "Cached discovery document for %s until %s", key, document.expires_at
        )
        return document
