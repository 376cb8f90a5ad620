"\"\"\"Upstream profile providers.\"\"\""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol, TypeVar, runtime_checkable

from ..schemas import ActivityRecord, ProfileSummary
from .github import GitHubProfileProvider
from .identifiers import is_valid_identifier, normalize_identifier
from .static import StaticProfileProvider

T = TypeVar("T")


@runtime_checkable
class ProfileProvider(Protocol):
    """Upstream profile provider contract.

    Both reads are idempotent. Failures are raised as ``UpstreamFetchError``
    with one of the ``FetchFailure`` kinds.
    """

    mode: str

    async def fetch_profile(self, identifier: str) -> ProfileSummary:
        """Return the profile snapshot with its public repositories."""

    async def fetch_activity(self, identifier: str) -> list[ActivityRecord]:
        """Return dated activity records, newest first."""


class RateLimitedProvider:
    """Throttle a provider: at most ``max_in_flight`` calls, spaced by ``min_interval_seconds``.

    asyncio primitives belong to one event loop, so they are recreated when
    the provider is reused from a new loop.
    """

    def __init__(
        self,
        provider: ProfileProvider,
        *,
        max_in_flight: int = 4,
        min_interval_seconds: float = 0.0,
    ) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self._provider = provider
        self._max_in_flight = max_in_flight
        self._min_interval = max(0.0, min_interval_seconds)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._semaphore: asyncio.Semaphore | None = None
        self._lock: asyncio.Lock | None = None
        self._last_call = 0.0

    @property
    def mode(self) -> str:
        return self._provider.mode

    async def fetch_profile(self, identifier: str) -> ProfileSummary:
        return await self._call(self._provider.fetch_profile, identifier)

    async def fetch_activity(self, identifier: str) -> list[ActivityRecord]:
        return await self._call(self._provider.fetch_activity, identifier)

    async def _call(self, func: Callable[[str], Awaitable[T]], identifier: str) -> T:
        semaphore, lock = self._primitives()
        async with semaphore:
            if self._min_interval > 0:
                async with lock:
                    loop = asyncio.get_running_loop()
                    wait = self._last_call + self._min_interval - loop.time()
                    if wait > 0:
                        await asyncio.sleep(wait)
                    self._last_call = loop.time()
            return await func(identifier)

    def _primitives(self) -> tuple[asyncio.Semaphore, asyncio.Lock]:
        loop = asyncio.get_running_loop()
        if self._loop is not loop or self._semaphore is None or self._lock is None:
            self._loop = loop
            self._semaphore = asyncio.Semaphore(self._max_in_flight)
            self._lock = asyncio.Lock()
            self._last_call = 0.0
        return self._semaphore, self._lock


__all__ = [
    "GitHubProfileProvider",
    "ProfileProvider",
    "RateLimitedProvider",
    "StaticProfileProvider",
    "is_valid_identifier",
    "normalize_identifier",
]
