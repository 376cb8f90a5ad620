"\"\"\"Immutable result types shared by the scoring components.\"\"\""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum, StrEnum
from typing import Any, Literal

from pydantic.alias_generators import to_camel

from ..schemas import CandidateInput, CandidateSignals, SalaryExpectation

GateStatus = Literal["ranked", "review", "filtered"]
DataQuality = Literal["full", "partial", "fallback"]
SkillStatus = Literal["Proven", "Weak", "Missing", "Fail"]
Impact = Literal["high", "medium", "low"]
Severity = Literal["high", "medium", "low"]


class ProofTier(StrEnum):
    """Reliability class of one evidence item, strongest first."""

    VERIFIED_ARTIFACT = "verified_artifact"
    STRONG_SIGNAL = "strong_signal"
    WEAK_SIGNAL = "weak_signal"
    CLAIM_ONLY = "claim_only"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    def at_least(self, other: ProofTier) -> bool:
        return self.rank >= other.rank

    def upgraded(self) -> ProofTier:
        """One level up; verified artifacts and missing evidence stay put."""
        if self in (ProofTier.VERIFIED_ARTIFACT, ProofTier.NONE):
            return self
        return _TIER_BY_RANK[self.rank + 1]


_TIER_RANK: dict[ProofTier, int] = {
    ProofTier.NONE: 0,
    ProofTier.CLAIM_ONLY: 1,
    ProofTier.WEAK_SIGNAL: 2,
    ProofTier.STRONG_SIGNAL: 3,
    ProofTier.VERIFIED_ARTIFACT: 4,
}
_TIER_BY_RANK: dict[int, ProofTier] = {rank: tier for tier, rank in _TIER_RANK.items()}


@dataclass(frozen=True, slots=True)
class EvidenceItem:
    """One piece of evidence for a (candidate, skill) pair."""

    id: str
    skill: str
    source: str
    description: str
    reliability: float
    tier: ProofTier = ProofTier.NONE
    url: str | None = None
    snippet: str | None = None
    impact: Impact = "medium"
    has_link: bool = False
    has_detail: bool = False
    corroborations: int = 0
    boosted: bool = False
    contradicts: bool = False


@dataclass(frozen=True, slots=True)
class SkillScore:
    """Per-skill capability verdict."""

    name: str
    score: float
    verified_score: float
    confidence: float
    evidence_count: int
    related_credit: float
    status: SkillStatus
    tier: ProofTier
    weight: float
    is_required: bool
    reason: str


@dataclass(frozen=True, slots=True)
class ContextDimension:
    """One behavioral dimension of the context score."""

    name: str
    score: float
    raw: float
    source: str
    confidence: float


@dataclass(frozen=True, slots=True)
class CompFit:
    """Compensation fit and the multiplier it applies to XS."""

    status: str
    label: str
    xs_multiplier: float
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Normalized evaluator output kept for the audit trail."""

    method: str
    scores: dict[str, float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Explanations:
    top_reasons: list[str]
    risks: list[str]
    missing_proof: list[str]


@dataclass(frozen=True, slots=True)
class ExplanationSummary:
    summary: str
    one_liner: str
    strengths: list[str]
    weaknesses: list[str]
    flags: list[str]


@dataclass(frozen=True, slots=True)
class RiskFlag:
    type: str
    severity: Severity
    description: str


@dataclass(frozen=True, slots=True)
class InterviewQuestion:
    id: str
    type: str
    question: str
    context: str
    expected_depth: str


@dataclass(frozen=True, slots=True)
class InterviewGuidance:
    questions: list[InterviewQuestion]
    areas_to_probe: list[str]
    suggested_tasks: list[str]


@dataclass(frozen=True, slots=True)
class CandidateAnalysis:
    """Complete analysis of one candidate. Built once, never mutated."""

    id: str
    name: str
    identifier: str
    profile_url: str
    portfolio: str | None
    avatar: str
    headline: str
    capability_score: float
    capability_total: float
    context_score: float
    forge_score: float
    learning_velocity_bonus: float
    gate_status: GateStatus
    tau: float
    data_quality: DataQuality
    verdict: str
    confidence: float
    skills: list[SkillScore]
    context: dict[str, ContextDimension]
    comp_fit: CompFit
    evidence: list[EvidenceItem]
    explanations: Explanations
    explanation: ExplanationSummary
    risks: list[RiskFlag]
    interview_guidance: InterviewGuidance
    activity_trend: list[int]
    evaluations: list[EvaluationResult]
    input_index: int = 0


@dataclass(frozen=True, slots=True)
class CandidateError:
    """Bare per-candidate error entry; the candidate is not part of the ranked set."""

    identifier: str
    error: str
    input_index: int = 0


@dataclass(frozen=True, slots=True)
class ResolvedCandidate:
    """Candidate entry after ingestion: a bare identifier string or a structured object.

    ``identifier`` is the normalized identifier when one was supplied and passed
    format validation; otherwise ``identifier_error`` says why it is missing.
    """

    index: int
    label: str
    candidate_id: str
    identifier: str | None
    identifier_error: str | None = None
    structured: CandidateInput | None = None

    @property
    def name(self) -> str:
        if self.structured is not None and self.structured.name:
            return self.structured.name
        return self.identifier or self.label

    @property
    def signals(self) -> CandidateSignals | None:
        return self.structured.signals if self.structured is not None else None

    @property
    def has_secondary_signals(self) -> bool:
        return self.signals is not None and self.signals.channel_count() > 0

    @property
    def salary_expectation(self) -> SalaryExpectation | None:
        return self.structured.salary_expectation if self.structured is not None else None

    @property
    def role_type(self) -> str | None:
        return self.structured.role_type if self.structured is not None else None


def to_payload(value: Any) -> Any:
    """Convert result objects into JSON-ready data with camelCase field names."""
    if is_dataclass(value) and not isinstance(value, type):
        return {
            to_camel(item.name): to_payload(getattr(value, item.name))
            for item in fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    return value
