"\"\"\"Core scoring engine components.\"\"\""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# NOTE: keep imports explicit for export clarity.
from .evaluators import (
    CapabilityScorer,
    CompensationEvaluator,
    ContextScorer,
    EvidenceNormalizer,
    LearningVelocityEvaluator,
)
from .explain import ExplanationBuilder
from .fallback import FallbackSynthesizer
from .gate import DEFAULT_TAU, GateEngine
from .models import CandidateAnalysis, CandidateError, EvaluationResult, ResolvedCandidate
from .screening import ScoringContext, ScreeningCore
from .tiers import ProofTierClassifier


@runtime_checkable
class Evaluator(Protocol):
    """Evaluator contract: a named method whose results feed the audit trail."""

    method: str

    def to_evaluation(self, result: Any) -> EvaluationResult:
        """Return the normalized audit record for a result this evaluator produced."""


__all__ = [
    "DEFAULT_TAU",
    "CandidateAnalysis",
    "CandidateError",
    "CapabilityScorer",
    "CompensationEvaluator",
    "ContextScorer",
    "EvaluationResult",
    "Evaluator",
    "EvidenceNormalizer",
    "ExplanationBuilder",
    "FallbackSynthesizer",
    "GateEngine",
    "LearningVelocityEvaluator",
    "ProofTierClassifier",
    "ResolvedCandidate",
    "ScoringContext",
    "ScreeningCore",
]
