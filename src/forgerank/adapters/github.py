"\"\"\"GitHub REST profile provider.\"\"\""

from __future__ import annotations

from typing import Any

import httpx
import pendulum
import structlog
from pydantic import ValidationError

from ..errors import FetchFailure, UpstreamFetchError
from ..schemas import ActivityRecord, ProfileSummary

DEFAULT_BASE_URL = "https://api.github.com"


class GitHubProfileProvider:
    """Fetch user, repositories and public events from the GitHub REST API."""

    mode = "live"

    def __init__(
        self,
        *,
        token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_repositories: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_repositories = max_repositories
        self._transport = transport
        self._logger = structlog.get_logger(__name__)

    async def fetch_profile(self, identifier: str) -> ProfileSummary:
        async with self._client() as client:
            user = await self._get_json(client, f"/users/{identifier}", identifier)
            repos = await self._get_json(
                client,
                f"/users/{identifier}/repos",
                identifier,
                params={"per_page": self._max_repositories, "sort": "pushed"},
            )
        if not isinstance(user, dict) or not isinstance(repos, list):
            raise UpstreamFetchError.malformed(identifier, "unexpected payload shape")
        try:
            return ProfileSummary.model_validate({**user, "repositories": repos})
        except ValidationError as exc:
            raise UpstreamFetchError.malformed(identifier, exc.errors()[0]["msg"]) from exc

    async def fetch_activity(self, identifier: str) -> list[ActivityRecord]:
        async with self._client() as client:
            events = await self._get_json(
                client,
                f"/users/{identifier}/events/public",
                identifier,
                params={"per_page": 100},
            )
        if not isinstance(events, list):
            raise UpstreamFetchError.malformed(identifier, "events payload is not a list")
        records: list[ActivityRecord] = []
        for event in events:
            if not isinstance(event, dict) or not event.get("created_at"):
                continue
            records.append(
                ActivityRecord(
                    occurred_at=event["created_at"],
                    kind=str(event.get("type") or "other"),
                    repository=(event.get("repo") or {}).get("name"),
                    count=_event_weight(event),
                )
            )
        return records

    def _client(self) -> httpx.AsyncClient:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "forgerank",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        path: str,
        identifier: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamFetchError.timeout(identifier, self._timeout) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(
                identifier, FetchFailure.NETWORK, f"Network error while fetching profile: {exc}"
            ) from exc

        if response.status_code == 404:
            raise UpstreamFetchError.not_found(identifier)
        if _rate_limited(response):
            self._logger.warning("provider.rate_limited", identifier=identifier, path=path)
            raise UpstreamFetchError.rate_limited(identifier, _reset_at(response))
        if response.status_code >= 400:
            raise UpstreamFetchError(
                identifier,
                FetchFailure.NETWORK,
                f"Upstream responded with HTTP {response.status_code}",
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFetchError.malformed(identifier, "invalid JSON") from exc


def _rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    return response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0"


def _reset_at(response: httpx.Response) -> str | None:
    raw = response.headers.get("x-ratelimit-reset")
    if not raw or not raw.isdigit():
        return None
    return pendulum.from_timestamp(int(raw)).to_iso8601_string()


def _event_weight(event: dict[str, Any]) -> int:
    if event.get("type") == "PushEvent":
        payload = event.get("payload") or {}
        commits = payload.get("commits")
        if isinstance(commits, list) and commits:
            return len(commits)
        size = payload.get("size")
        if isinstance(size, int) and size > 0:
            return size
    return 1


__all__ = ["DEFAULT_BASE_URL", "GitHubProfileProvider"]
