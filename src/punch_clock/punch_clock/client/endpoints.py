from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Sequence

import httpx

from ..core.constants import DEFAULT_PROBE_TIMEOUT, HEALTH_PATH
from ..core.exceptions import TransientNetworkError
from ..core.logging_config import get_logger
from .storage import ENDPOINT_KEY, LocalStore

logger = get_logger(__name__)


class EndpointResolver:
    """Picks the server base URL the device talks to.

    Candidates are probed concurrently on ``/health`` without credentials; the
    first healthy one is pinned (and persisted) until ``invalidate`` is called.
    One resolver is owned by each client instance.
    """

    def __init__(
        self,
        candidates: Sequence[str],
        *,
        store: Optional[LocalStore] = None,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ):
        self._candidates = tuple(c.rstrip("/") for c in candidates if c and c.strip())
        if not self._candidates:
            raise ValueError("At least one endpoint candidate is required")
        self._store = store
        self._probe_timeout = float(probe_timeout)
        self._lock = asyncio.Lock()
        self._pinned: Optional[str] = None

        remembered = store.get(ENDPOINT_KEY) if store else None
        if remembered in self._candidates:
            self._pinned = remembered

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._candidates

    @property
    def current(self) -> Optional[str]:
        return self._pinned

    async def resolve(self, http: httpx.AsyncClient, *, exclude: Iterable[str] = ()) -> str:
        excluded = set(exclude)
        if self._pinned and self._pinned not in excluded:
            return self._pinned

        async with self._lock:
            if self._pinned and self._pinned not in excluded:
                return self._pinned

            remaining = [c for c in self._candidates if c not in excluded]
            if not remaining:
                raise TransientNetworkError("Every endpoint candidate has already failed")

            winner = await self._race(http, remaining)
            self._pin(winner)
            return winner

    def invalidate(self) -> None:
        if self._pinned:
            logger.info("Dropping pinned endpoint %s", self._pinned)
        self._pinned = None
        if self._store:
            self._store.delete(ENDPOINT_KEY)

    def _pin(self, base_url: str) -> None:
        self._pinned = base_url
        if self._store:
            self._store.set(ENDPOINT_KEY, base_url)
        logger.info("Pinned endpoint %s", base_url)

    async def _race(self, http: httpx.AsyncClient, candidates: Sequence[str]) -> str:
        tasks = [asyncio.create_task(self._probe(http, c)) for c in candidates]
        try:
            for next_done in asyncio.as_completed(tasks):
                try:
                    return await next_done
                except TransientNetworkError as e:
                    logger.info("Probe failed: %s", e)
            raise TransientNetworkError(f"No endpoint answered {HEALTH_PATH}: {', '.join(candidates)}")
        finally:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _probe(self, http: httpx.AsyncClient, base_url: str) -> str:
        try:
            response = await asyncio.wait_for(
                http.get(f"{base_url}{HEALTH_PATH}", timeout=self._probe_timeout),
                timeout=self._probe_timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            raise TransientNetworkError(f"{base_url} timed out")
        except httpx.RequestError as e:
            raise TransientNetworkError(f"{base_url} unreachable: {e}")

        if response.status_code != 200:
            raise TransientNetworkError(f"{base_url} answered HTTP {response.status_code}")
        return base_url
