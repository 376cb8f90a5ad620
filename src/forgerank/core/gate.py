"\"\"\"Gate and rank engine: tau resolution, FORGE score, gate status and ordering.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ..schemas import JobConfig
from .models import CandidateAnalysis, EvaluationResult, GateStatus

DEFAULT_TAU = 0.40

_GROUP_ORDER: dict[str, int] = {"ranked": 0, "review": 1, "filtered": 2}


@dataclass
class GateConfig:
    """Gate thresholds.

    ``review_margin`` widens the review band below tau. With the default of
    zero a candidate is ranked or in review exactly when its verified
    capability reaches tau.
    """

    default_tau: float = DEFAULT_TAU
    review_margin: float = 0.0
    min_rank_forge: float = 0.15
    strong_hire_forge: float = 0.60

    def __post_init__(self) -> None:
        if not 0.0 <= self.default_tau <= 1.0:
            raise ValueError("default_tau must be within [0, 1]")
        if self.review_margin < 0:
            raise ValueError("review_margin must not be negative")


class GateEngine:
    """Apply tau to verified capability and order the batch."""

    method = "gate"

    def __init__(self, *, config: GateConfig | None = None) -> None:
        self._config = config or GateConfig()

    @property
    def config(self) -> GateConfig:
        return self._config

    def resolve_tau(self, job_config: JobConfig | None, tau: float | None) -> float:
        """jobConfig.gateThreshold wins over the request tau, which wins over the default."""
        if job_config is not None and job_config.gate_threshold is not None:
            return float(job_config.gate_threshold)
        if tau is not None:
            return float(tau)
        return self._config.default_tau

    @staticmethod
    def forge_score(capability: float, context: float, bonus: float = 0.0) -> float:
        return round(max(0.0, min(1.0, capability * context + bonus / 100.0)), 4)

    def classify(self, capability: float, forge: float, tau: float) -> GateStatus:
        if capability >= tau:
            return "ranked" if forge >= self._config.min_rank_forge else "review"
        if capability >= tau - self._config.review_margin:
            return "review"
        return "filtered"

    def verdict(self, status: GateStatus, forge: float) -> str:
        if status == "ranked":
            return "Strong Hire" if forge >= self._config.strong_hire_forge else "Hire"
        if status == "review":
            return "Review"
        return "No Hire"

    def to_evaluation(
        self,
        *,
        capability: float,
        context: float,
        bonus: float,
        tau: float,
        status: GateStatus,
    ) -> EvaluationResult:
        return EvaluationResult(
            method=self.method,
            scores={
                "capability_score": capability,
                "context_score": context,
                "learning_velocity_bonus": bonus,
                "forge_score": self.forge_score(capability, context, bonus),
            },
            metadata={
                "tau": tau,
                "gate_status": status,
                "review_margin": self._config.review_margin,
                "min_rank_forge": self._config.min_rank_forge,
            },
        )

    @staticmethod
    def sort(analyses: Iterable[CandidateAnalysis]) -> list[CandidateAnalysis]:
        """Ranked, then review (both by FORGE score), then filtered by capability.

        Ties keep input order.
        """

        def key(analysis: CandidateAnalysis) -> tuple[int, float, int]:
            group = _GROUP_ORDER[analysis.gate_status]
            primary = (
                analysis.capability_score
                if analysis.gate_status == "filtered"
                else analysis.forge_score
            )
            return group, -primary, analysis.input_index

        return sorted(analyses, key=key)

    @staticmethod
    def counts(analyses: Sequence[CandidateAnalysis]) -> dict[str, int]:
        counts = {status: 0 for status in _GROUP_ORDER}
        for analysis in analyses:
            counts[analysis.gate_status] += 1
        return counts


__all__ = ["DEFAULT_TAU", "GateConfig", "GateEngine"]
