"\"\"\"Compensation fit evaluation.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...schemas import Budget, SalaryExpectation
from ..models import CompFit, EvaluationResult

_LABELS = {
    "in_band": "In Band",
    "above_band": "Above Band",
    "below_band": "Below Band",
    "not_specified": "Not Specified",
    "insufficient_data": "Insufficient Data",
}


@dataclass
class CompensationConfig:
    """Band tolerance and the XS multipliers per fit status."""

    tolerance_ratio: float = 0.0
    in_band_multiplier: float = 1.0
    above_band_multiplier: float = 0.92
    below_band_multiplier: float = 1.0


class CompensationEvaluator:
    """Compare a declared salary expectation with the job budget band."""

    method = "compensation"

    def __init__(self, *, config: CompensationConfig | None = None) -> None:
        self._config = config or CompensationConfig()

    def evaluate(
        self,
        expectation: SalaryExpectation | None,
        budget: Budget | None,
    ) -> CompFit:
        desired_range = self._candidate_range(expectation)
        job_range = self._job_range(budget)
        tolerance_ratio = self._config.tolerance_ratio

        if job_range is None:
            return self._build(status="not_specified", desired_range=desired_range, job_range=None)
        if desired_range is None:
            return self._build(status="insufficient_data", desired_range=None, job_range=job_range)

        expanded_min = job_range[0] * (1 - tolerance_ratio) if job_range[0] is not None else None
        expanded_max = job_range[1] * (1 + tolerance_ratio) if job_range[1] is not None else None

        cand_min, cand_max = desired_range
        if expanded_max is not None and cand_min > expanded_max:
            status = "above_band"
        elif expanded_min is not None and cand_max < expanded_min:
            status = "below_band"
        else:
            status = "in_band"

        return self._build(
            status=status,
            desired_range=desired_range,
            job_range=job_range,
            expanded_job_range=(expanded_min, expanded_max),
            gap=self._gap_amount(desired_range, job_range),
            currency=expectation.currency if expectation else None,
        )

    def to_evaluation(self, fit: CompFit) -> EvaluationResult:
        return EvaluationResult(
            method=self.method,
            scores={"xs_multiplier": fit.xs_multiplier},
            metadata=dict(fit.detail, status=fit.status),
        )

    def _build(
        self,
        *,
        status: str,
        desired_range: tuple[float, float] | None,
        job_range: tuple[float | None, float | None] | None,
        expanded_job_range: tuple[float | None, float | None] | None = None,
        gap: float | None = None,
        currency: str | None = None,
    ) -> CompFit:
        multiplier = {
            "in_band": self._config.in_band_multiplier,
            "above_band": self._config.above_band_multiplier,
            "below_band": self._config.below_band_multiplier,
        }.get(status, 1.0)
        detail: dict[str, Any] = {
            "desired_range": desired_range,
            "job_range": job_range,
            "expanded_job_range": expanded_job_range,
            "tolerance_ratio": self._config.tolerance_ratio,
            "gap_amount": gap,
            "currency": currency,
            "retention_risk": status == "below_band",
        }
        return CompFit(
            status=status,
            label=_LABELS[status],
            xs_multiplier=multiplier,
            detail=detail,
        )

    @staticmethod
    def _candidate_range(expectation: SalaryExpectation | None) -> tuple[float, float] | None:
        if expectation is None:
            return None
        if expectation.target is not None:
            return expectation.target, expectation.target
        minimum = expectation.min
        maximum = expectation.max
        if minimum is None and maximum is None:
            return None
        if minimum is None:
            minimum = maximum
        if maximum is None:
            maximum = minimum
        if minimum > maximum:
            minimum, maximum = maximum, minimum
        return minimum, maximum

    @staticmethod
    def _job_range(budget: Budget | None) -> tuple[float | None, float | None] | None:
        if budget is None or (budget.min is None and budget.max is None):
            return None
        return budget.min, budget.max

    @staticmethod
    def _gap_amount(
        candidate_range: tuple[float, float],
        job_range: tuple[float | None, float | None],
    ) -> float:
        cand_min, cand_max = candidate_range
        job_min, job_max = job_range
        if job_min is not None and cand_max < job_min:
            return job_min - cand_max
        if job_max is not None and cand_min > job_max:
            return cand_min - job_max
        return 0.0
