"\"\"\"Capability score (CS) from tiered evidence.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ...calibration import IdentityWeightAdjuster, WeightAdjuster
from ...errors import InternalScoringFault
from ...schemas import SkillRequirement
from ..models import EvaluationResult, EvidenceItem, ProofTier, SkillScore, SkillStatus
from ..tiers import ProofTierClassifier


@dataclass
class CapabilityConfig:
    """Aggregation policy for per-skill evidence."""

    full_credit_items: int = 3
    decay: float = 0.5
    proven_threshold: float = 65.0
    weak_threshold: float = 25.0
    confidence_saturation: float = 2.0


@dataclass(frozen=True, slots=True)
class CapabilityResult:
    """Per-skill scores plus CS_total and CS_verified on a 0-100 scale."""

    skills: list[SkillScore]
    total: float
    verified: float
    weights: dict[str, float]


class CapabilityScorer:
    """Aggregate tiered evidence into skill scores and the weighted capability score."""

    method = "capability"

    def __init__(
        self,
        *,
        classifier: ProofTierClassifier | None = None,
        config: CapabilityConfig | None = None,
        weight_adjuster: WeightAdjuster | None = None,
    ) -> None:
        self._classifier = classifier or ProofTierClassifier()
        self._config = config or CapabilityConfig()
        self._weight_adjuster = weight_adjuster or IdentityWeightAdjuster()

    def score(
        self,
        skills: Sequence[SkillRequirement],
        evidence: Iterable[EvidenceItem],
    ) -> CapabilityResult:
        items = list(evidence)
        weights = self._normalized_weights(skills)

        skill_scores = [self.score_skill(skill, items, weights[skill.name]) for skill in skills]
        total = sum(weights[s.name] * s.score for s in skill_scores)
        verified = sum(weights[s.name] * s.verified_score for s in skill_scores)
        return CapabilityResult(
            skills=skill_scores,
            total=round(_clip(total), 4),
            verified=round(_clip(verified), 4),
            weights=weights,
        )

    def score_skill(
        self,
        skill: SkillRequirement,
        evidence: Sequence[EvidenceItem],
        weight: float,
    ) -> SkillScore:
        key = skill.name.lower()
        related_keys = set(self._classifier.related_sources(key))
        own = [item for item in evidence if item.skill.lower() == key]
        own_artifacts = {_artifact_key(item) for item in own}
        related = [
            item
            for item in evidence
            if item.skill.lower() in related_keys and _artifact_key(item) not in own_artifacts
        ]
        discount = self._classifier.config.related_discount

        own_total = self._diminished(self._contribution(item) for item in own)
        own_verified = self._diminished(
            self._contribution(item) for item in own if _strong(item.tier)
        )
        related_total = discount * self._diminished(self._contribution(item) for item in related)
        related_verified = discount * self._diminished(
            self._contribution(item) for item in related if _strong(item.tier)
        )

        score = round(_clip(own_total + related_total), 2)
        verified_score = round(_clip(own_verified + related_verified), 2)
        tier = max((item.tier for item in own), key=lambda t: t.rank, default=ProofTier.NONE)
        confidence = min(
            1.0,
            sum(item.reliability * self._classifier.multiplier(item.tier) for item in own)
            / self._config.confidence_saturation,
        )
        contradicted = any(item.contradicts for item in own)
        status = self._status(skill, score, tier, contradicted)

        return SkillScore(
            name=skill.name,
            score=score,
            verified_score=verified_score,
            confidence=round(confidence, 2),
            evidence_count=len(own),
            related_credit=round(_clip(related_total), 2),
            status=status,
            tier=tier,
            weight=skill.weight,
            is_required=skill.is_required,
            reason=self._reason(status, own, tier, related_total),
        )

    def to_evaluation(self, result: CapabilityResult) -> EvaluationResult:
        return EvaluationResult(
            method=self.method,
            scores={"cs_total": result.total, "cs_verified": result.verified},
            metadata={
                "weights": dict(result.weights),
                "full_credit_items": self._config.full_credit_items,
                "decay": self._config.decay,
                "claims_count_fraction": self._classifier.config.claims_count_fraction,
            },
        )

    def _contribution(self, item: EvidenceItem) -> float:
        return item.reliability * self._classifier.multiplier(item.tier) * 100.0

    def _diminished(self, contributions: Iterable[float]) -> float:
        """Sum with full credit for the strongest items and geometric decay after."""
        ordered = sorted(contributions, reverse=True)
        cap = self._config.full_credit_items
        return sum(
            value if idx < cap else value * self._config.decay ** (idx - cap + 1)
            for idx, value in enumerate(ordered)
        )

    def _normalized_weights(self, skills: Sequence[SkillRequirement]) -> dict[str, float]:
        adjusted = self._weight_adjuster.adjust(skills)
        total = sum(max(adjusted.get(skill.name, 0.0), 0.0) for skill in skills)
        if total <= 0:
            raise InternalScoringFault("Skill weights sum to zero after adjustment")
        return {skill.name: max(adjusted.get(skill.name, 0.0), 0.0) / total for skill in skills}

    def _status(
        self,
        skill: SkillRequirement,
        score: float,
        tier: ProofTier,
        contradicted: bool,
    ) -> SkillStatus:
        if skill.is_required and score == 0 and contradicted:
            return "Fail"
        if score >= self._config.proven_threshold and _strong(tier):
            return "Proven"
        if score >= self._config.weak_threshold:
            return "Weak"
        return "Missing"

    @staticmethod
    def _reason(
        status: SkillStatus,
        own: Sequence[EvidenceItem],
        tier: ProofTier,
        related_total: float,
    ) -> str:
        if status == "Fail":
            return "Candidate explicitly states no experience"
        if status == "Proven":
            return f"{len(own)} evidence item(s), best proof {tier.value}"
        if not own and related_total > 0:
            return "Credited through related skills only"
        if not own:
            return "No evidence found"
        if status == "Weak" and not _strong(tier):
            return f"Best proof is {tier.value}; needs a verifiable artifact"
        if status == "Weak":
            return "Verified evidence present but below the proven threshold"
        return "Evidence too thin to count"


def _artifact_key(item: EvidenceItem) -> tuple[str, str]:
    """Identity of the artifact behind an item; one artifact credits a skill once."""
    return item.source, item.url or item.snippet or item.description


def _strong(tier: ProofTier) -> bool:
    return tier.at_least(ProofTier.STRONG_SIGNAL)


def _clip(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))
