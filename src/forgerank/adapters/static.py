"\"\"\"Offline provider backed by a fixture mapping.\"\"\""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError

from ..errors import FetchFailure, UpstreamFetchError
from ..schemas import ActivityRecord, ProfileSummary


class StaticProfileProvider:
    """Serve profiles from memory.

    Each record is keyed by identifier (case-insensitive) and may hold
    ``profile``, ``activity``, ``delay`` (seconds before the profile is
    returned) and ``error`` / ``activity_error`` objects with ``kind`` and
    ``message`` to simulate upstream failures.
    """

    mode = "offline"

    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._records = {key.lower(): dict(value) for key, value in (records or {}).items()}

    @classmethod
    def from_path(cls, path: Path) -> StaticProfileProvider:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid profile fixture JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError("Profile fixtures must be a JSON object keyed by identifier")
        return cls(data)

    async def fetch_profile(self, identifier: str) -> ProfileSummary:
        record = self._record(identifier)
        delay = float(record.get("delay") or 0.0)
        if delay > 0:
            await asyncio.sleep(delay)
        self._raise_configured(identifier, record.get("error"))
        try:
            return ProfileSummary.model_validate({"login": identifier, **(record.get("profile") or {})})
        except ValidationError as exc:
            raise UpstreamFetchError.malformed(identifier, exc.errors()[0]["msg"]) from exc

    async def fetch_activity(self, identifier: str) -> list[ActivityRecord]:
        record = self._record(identifier)
        self._raise_configured(identifier, record.get("activity_error"))
        try:
            return [ActivityRecord.model_validate(item) for item in record.get("activity") or []]
        except ValidationError as exc:
            raise UpstreamFetchError.malformed(identifier, exc.errors()[0]["msg"]) from exc

    def _record(self, identifier: str) -> dict[str, Any]:
        record = self._records.get(identifier.lower())
        if record is None:
            raise UpstreamFetchError.not_found(identifier)
        return record

    @staticmethod
    def _raise_configured(identifier: str, error: Any) -> None:
        if not error:
            return
        kind = FetchFailure(error.get("kind", FetchFailure.NETWORK))
        message = error.get("message")
        if kind is FetchFailure.NOT_FOUND and not message:
            raise UpstreamFetchError.not_found(identifier)
        if kind is FetchFailure.RATE_LIMITED and not message:
            raise UpstreamFetchError.rate_limited(identifier, error.get("reset_at"))
        raise UpstreamFetchError(identifier, kind, message or f"Upstream failure: {kind.value}")


__all__ = ["StaticProfileProvider"]
