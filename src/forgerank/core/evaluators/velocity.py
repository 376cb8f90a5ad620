"\"\"\"Learning velocity bonus from the activity trend.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

import pendulum
from pendulum.parsing.exceptions import ParserError

from ...schemas import ActivityRecord, RepositoryRecord
from ..models import EvaluationResult


@dataclass
class VelocityConfig:
    """Window and point scales for the learning velocity bonus."""

    window_months: int = 6
    min_active_months: int = 3
    trend_points: float = 7.0
    full_credit_slope: float = 0.25
    modified_fork_points: float = 1.0
    max_modified_fork_points: float = 3.0
    max_bonus: float = 10.0


@dataclass(frozen=True, slots=True)
class VelocityResult:
    bonus: float
    trend: list[int]
    metadata: dict[str, Any]


class LearningVelocityEvaluator:
    """Reward a growing contribution cadence and forks that were actually modified.

    Activity is bucketed into calendar months ending at the reference date.
    The reference date is the request's ``as_of`` when given, otherwise the
    latest activity timestamp, so identical inputs always produce identical
    bonuses.
    """

    method = "learning_velocity"

    def __init__(
        self,
        *,
        config: VelocityConfig | None = None,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._config = config or VelocityConfig()
        self._now_provider = now_provider or pendulum.now

    def evaluate(
        self,
        activity: Sequence[ActivityRecord],
        repositories: Sequence[RepositoryRecord] = (),
        *,
        as_of: str | None = None,
    ) -> VelocityResult:
        dated: list[tuple[pendulum.DateTime, ActivityRecord]] = []
        for record in activity:
            parsed = self._parse_date(record.occurred_at)
            if parsed is not None:
                dated.append((parsed, record))
        reference = self._resolve_as_of(as_of, [parsed for parsed, _ in dated])
        trend = self._bucket(dated, reference)
        active_months = sum(1 for count in trend if count > 0)

        modified_forks = self._modified_forks(repositories)
        if active_months < self._config.min_active_months:
            return VelocityResult(
                bonus=0.0,
                trend=trend,
                metadata={
                    "status": "insufficient_history",
                    "active_months": active_months,
                    "modified_forks": modified_forks,
                    "reference": reference.to_date_string(),
                },
            )

        slope = _normalized_slope(trend)
        trend_bonus = self._config.trend_points * max(
            0.0, min(1.0, slope / self._config.full_credit_slope)
        )
        fork_bonus = min(
            self._config.max_modified_fork_points,
            modified_forks * self._config.modified_fork_points,
        )
        bonus = round(min(self._config.max_bonus, trend_bonus + fork_bonus), 2)
        return VelocityResult(
            bonus=bonus,
            trend=trend,
            metadata={
                "status": "ok",
                "active_months": active_months,
                "normalized_slope": round(slope, 4),
                "trend_bonus": round(trend_bonus, 2),
                "modified_forks": modified_forks,
                "fork_bonus": fork_bonus,
                "reference": reference.to_date_string(),
            },
        )

    def to_evaluation(self, result: VelocityResult) -> EvaluationResult:
        return EvaluationResult(
            method=self.method,
            scores={"learning_velocity_bonus": result.bonus},
            metadata=dict(result.metadata, trend=list(result.trend)),
        )

    def _bucket(
        self,
        dated: Iterable[tuple[pendulum.DateTime, ActivityRecord]],
        reference: pendulum.DateTime,
    ) -> list[int]:
        window = self._config.window_months
        buckets = [0] * window
        for occurred, record in dated:
            months_back = (reference.year - occurred.year) * 12 + (reference.month - occurred.month)
            if 0 <= months_back < window:
                buckets[window - 1 - months_back] += max(record.count, 0)
        return buckets

    def _modified_forks(self, repositories: Iterable[RepositoryRecord]) -> int:
        count = 0
        for repo in repositories:
            if not repo.fork:
                continue
            created = self._parse_date(repo.created_at)
            pushed = self._parse_date(repo.pushed_at)
            if created is not None and pushed is not None and pushed > created:
                count += 1
        return count

    def _resolve_as_of(
        self,
        as_of: str | None,
        timestamps: Sequence[pendulum.DateTime],
    ) -> pendulum.DateTime:
        if as_of:
            parsed = self._parse_date(as_of)
            if parsed is not None:
                return parsed
        if timestamps:
            return max(timestamps)
        return self._now_provider()

    @staticmethod
    def _parse_date(value: str | None) -> pendulum.DateTime | None:
        if not value:
            return None
        try:
            if len(value) == 7 and value[4] == "-":
                return pendulum.datetime(int(value[:4]), int(value[5:7]), 1)
            parsed = pendulum.parse(value)
        except (ValueError, ParserError):
            return None
        if not isinstance(parsed, pendulum.DateTime):
            return None
        return parsed


def _normalized_slope(values: Sequence[int]) -> float:
    """Least-squares slope per month, relative to the mean monthly count."""
    n = len(values)
    mean_y = sum(values) / n
    if mean_y <= 0:
        return 0.0
    mean_x = (n - 1) / 2
    numerator = sum((x - mean_x) * (y - mean_y) for x, y in enumerate(values))
    denominator = sum((x - mean_x) ** 2 for x in range(n))
    if denominator == 0:
        return 0.0
    return numerator / denominator / mean_y
