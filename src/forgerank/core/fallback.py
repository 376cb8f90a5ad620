"\"\"\"Reduced-confidence analyses for candidates without a usable profile.\"\"\""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..calibration import IdentityWeightAdjuster, WeightAdjuster
from ..errors import InternalScoringFault
from .evaluators import CompensationEvaluator, EvidenceNormalizer
from .gate import GateEngine
from .models import (
    CandidateAnalysis,
    CompFit,
    ContextDimension,
    EvaluationResult,
    EvidenceItem,
    ExplanationSummary,
    Explanations,
    InterviewGuidance,
    InterviewQuestion,
    ProofTier,
    ResolvedCandidate,
    RiskFlag,
    SkillScore,
)
from .screening import ScoringContext


@dataclass
class FallbackConfig:
    """Ceilings for analyses built from secondary signals only.

    Both ceilings grow with the number of signal channels supplied and stay
    below what verified evidence can reach.
    """

    capability_base: float = 0.4
    capability_step: float = 0.1
    capability_ceiling: float = 0.7
    context_base: float = 0.5
    context_step: float = 0.08
    context_ceiling: float = 0.8
    skill_confidence_step: float = 0.12


class FallbackSynthesizer:
    """Build the partial analysis or the zero-score failure record."""

    method = "fallback"

    def __init__(
        self,
        *,
        normalizer: EvidenceNormalizer,
        compensation: CompensationEvaluator,
        gate: GateEngine,
        config: FallbackConfig | None = None,
        weight_adjuster: WeightAdjuster | None = None,
    ) -> None:
        self._normalizer = normalizer
        self._compensation = compensation
        self._gate = gate
        self._config = config or FallbackConfig()
        self._weight_adjuster = weight_adjuster or IdentityWeightAdjuster()

    def ceilings(self, channel_count: int) -> tuple[float, float]:
        cfg = self._config
        capability = min(cfg.capability_base + cfg.capability_step * channel_count, cfg.capability_ceiling)
        context = min(cfg.context_base + cfg.context_step * channel_count, cfg.context_ceiling)
        return round(capability, 4), round(context, 4)

    def synthesize(
        self,
        candidate: ResolvedCandidate,
        ctx: ScoringContext,
        *,
        failure: str | None = None,
    ) -> CandidateAnalysis:
        """Score a candidate from portfolio, writing and free-text signals alone."""
        signals = candidate.signals
        if signals is None or signals.channel_count() == 0:
            raise ValueError("Fallback synthesis needs at least one secondary signal")

        channels = signals.channels()
        count = signals.channel_count()
        capability_ceiling, context_ceiling = self.ceilings(count)

        evidence = [
            replace(item, tier=ProofTier.CLAIM_ONLY)
            for item in self._normalizer.collect(
                skill_terms=[skill.name for skill in ctx.skills], signals=signals
            )
        ]
        evidence.extend(self._channel_items(candidate))

        weights = self._weights(ctx)
        skills: list[SkillScore] = []
        for skill in ctx.skills:
            own = [item for item in evidence if item.skill.lower() == skill.name.lower()]
            mentioned = any(not item.contradicts for item in own)
            score = round(capability_ceiling * 100.0, 2) if mentioned else 0.0
            skills.append(
                SkillScore(
                    name=skill.name,
                    score=score,
                    verified_score=score,
                    confidence=round(min(1.0, self._config.skill_confidence_step * count), 2),
                    evidence_count=len(own),
                    related_credit=0.0,
                    status="Weak",
                    tier=ProofTier.CLAIM_ONLY,
                    weight=skill.weight,
                    is_required=skill.is_required,
                    reason=(
                        "No verifiable profile; mentioned in secondary signals, needs manual review"
                        if mentioned
                        else "No verifiable profile and not mentioned in secondary signals"
                    ),
                )
            )

        capability = round(sum(weights[s.name] * s.verified_score for s in skills) / 100.0, 4)
        comp_fit = self._compensation.evaluate(candidate.salary_expectation, ctx.job_config.budget)
        context_score = round(min(1.0, context_ceiling * comp_fit.xs_multiplier), 4)
        forge = self._gate.forge_score(capability, context_score)
        status = self._gate.classify(capability, forge, ctx.tau)

        role = candidate.role_type or ctx.role_title
        if failure:
            summary = f"Profile fetch failed: {failure}. Evaluated via other signals."
        else:
            summary = f"Candidate with {count} secondary signal(s) and no verifiable profile. Requires manual review."

        risks = ["No verifiable profile evidence available", "Requires manual verification of claims"]
        if count < 2:
            risks.append("Very limited signal data")
        if failure:
            risks.insert(0, failure)

        risk_flags = [
            RiskFlag(type="ProofGap", severity="medium", description="Cannot verify skills via profile evidence")
        ]
        risk_flags.extend(self._comp_flags(comp_fit))

        top_reasons = [
            f"{role} - evaluated via secondary signals",
            "Portfolio provided for review" if channels["portfolio"] else "No portfolio link",
            "Writing samples available" if channels["writing"] else "No writing samples",
        ]
        strengths = [
            label
            for present, label in (
                (channels["portfolio"], "Portfolio provided"),
                (channels["writing"], "Writing samples available"),
                (channels["extracurricular"], "Extracurricular activities noted"),
            )
            if present
        ]

        return CandidateAnalysis(
            id=candidate.candidate_id,
            name=candidate.name,
            identifier=candidate.identifier or "",
            profile_url="",
            portfolio=signals.portfolio_url or None,
            avatar="",
            headline=f"{role} - secondary signal evaluation",
            capability_score=capability,
            capability_total=capability,
            context_score=context_score,
            forge_score=forge,
            learning_velocity_bonus=0.0,
            gate_status=status,
            tau=ctx.tau,
            data_quality="partial",
            verdict="Review" if status == "ranked" else "Needs More Proof",
            confidence=float(count * 15),
            skills=skills,
            context=self._context(channels),
            comp_fit=comp_fit,
            evidence=evidence,
            explanations=Explanations(
                top_reasons=top_reasons,
                risks=risks,
                missing_proof=["Profile activity", "Verified code contributions"],
            ),
            explanation=ExplanationSummary(
                summary=summary,
                one_liner=f"{role} - {count} signal(s), needs review",
                strengths=strengths,
                weaknesses=["No profile verification possible"],
                flags=["Very limited proof"] if count < 2 else [],
            ),
            risks=risk_flags,
            interview_guidance=InterviewGuidance(
                questions=[
                    InterviewQuestion(
                        id="q1",
                        type="gap-probe",
                        question=f"Walk me through a specific {role} project you're proud of.",
                        context="No profile evidence available, needs verbal verification",
                        expected_depth="Concrete examples with outcomes",
                    )
                ],
                areas_to_probe=["Verify claimed experience", "Ask for work samples", "Check references"],
                suggested_tasks=[f"{role}-specific take-home task"],
            ),
            activity_trend=[0] * 6,
            evaluations=[
                self._compensation.to_evaluation(comp_fit),
                EvaluationResult(
                    method=self.method,
                    scores={
                        "capability_ceiling": capability_ceiling,
                        "context_ceiling": context_ceiling,
                        "capability_score": capability,
                        "context_score": context_score,
                    },
                    metadata={"channels": channels, "failure": failure},
                ),
            ],
            input_index=candidate.index,
        )

    def failure_record(
        self,
        candidate: ResolvedCandidate,
        ctx: ScoringContext,
        *,
        reason: str,
    ) -> CandidateAnalysis:
        """Zero-score filtered record carrying ``reason`` in every explanatory field."""
        identifier = candidate.identifier or candidate.label
        zero = {
            key: ContextDimension(name=key.capitalize(), score=0.0, raw=0.0, source="N/A", confidence=0.0)
            for key in ("teamwork", "communication", "adaptability", "ownership")
        }
        return CandidateAnalysis(
            id=f"cand_{identifier}_error",
            name=candidate.name,
            identifier=identifier,
            profile_url="",
            portfolio=None,
            avatar="",
            headline=f"Failed to fetch profile data: {reason}",
            capability_score=0.0,
            capability_total=0.0,
            context_score=0.0,
            forge_score=0.0,
            learning_velocity_bonus=0.0,
            gate_status="filtered",
            tau=ctx.tau,
            data_quality="fallback",
            verdict="Reject",
            confidence=0.0,
            skills=[
                SkillScore(
                    name=skill.name,
                    score=0.0,
                    verified_score=0.0,
                    confidence=0.0,
                    evidence_count=0,
                    related_credit=0.0,
                    status="Missing",
                    tier=ProofTier.NONE,
                    weight=skill.weight,
                    is_required=skill.is_required,
                    reason=reason,
                )
                for skill in ctx.skills
            ],
            context=zero,
            comp_fit=CompFit(status="not_specified", label="Not Specified", xs_multiplier=1.0),
            evidence=[],
            explanations=Explanations(
                top_reasons=[f"Failed to fetch data: {reason}", "Cannot evaluate", "Try again later"],
                risks=[reason, "No data available"],
                missing_proof=[skill.name for skill in ctx.skills],
            ),
            explanation=ExplanationSummary(
                summary=f"Error: {reason}",
                one_liner=f"Could not analyze candidate: {reason}",
                strengths=[],
                weaknesses=[reason],
                flags=[reason],
            ),
            risks=[RiskFlag(type="Error", severity="high", description=reason)],
            interview_guidance=InterviewGuidance(questions=[], areas_to_probe=[reason], suggested_tasks=[]),
            activity_trend=[0] * 6,
            evaluations=[
                EvaluationResult(method=self.method, scores={}, metadata={"failure": reason}),
            ],
            input_index=candidate.index,
        )

    def _channel_items(self, candidate: ResolvedCandidate) -> list[EvidenceItem]:
        signals = candidate.signals
        items: list[EvidenceItem] = []
        if signals is None:
            return items
        if signals.portfolio_url and signals.portfolio_url.strip():
            items.append(
                EvidenceItem(
                    id="ev_portfolio",
                    skill="General",
                    source="portfolio",
                    description="Portfolio link provided for manual review",
                    reliability=0.6,
                    tier=ProofTier.CLAIM_ONLY,
                    url=signals.portfolio_url.strip(),
                    has_link=True,
                )
            )
        links = [link.strip() for link in signals.writing_links if link and link.strip()]
        if links:
            items.append(
                EvidenceItem(
                    id="ev_writing",
                    skill="Communication",
                    source="writing",
                    description=f"{len(links)} writing link(s) provided",
                    reliability=0.5,
                    tier=ProofTier.CLAIM_ONLY,
                    url=links[0],
                    has_link=True,
                )
            )
        return items

    def _weights(self, ctx: ScoringContext) -> dict[str, float]:
        adjusted = self._weight_adjuster.adjust(ctx.skills)
        total = sum(max(adjusted.get(skill.name, 0.0), 0.0) for skill in ctx.skills)
        if total <= 0:
            raise InternalScoringFault("Skill weights sum to zero after adjustment")
        return {skill.name: max(adjusted.get(skill.name, 0.0), 0.0) / total for skill in ctx.skills}

    @staticmethod
    def _context(channels: dict[str, bool]) -> dict[str, ContextDimension]:
        def dim(name: str, present: bool, score: float, source: str) -> ContextDimension:
            if not present:
                return ContextDimension(name=name, score=30.0, raw=0.0, source="Limited data", confidence=0.2)
            return ContextDimension(name=name, score=score, raw=score, source=source, confidence=0.4)

        return {
            "teamwork": dim("Teamwork", channels["linkedin"], 50.0, "LinkedIn text provided"),
            "communication": dim("Communication", channels["writing"], 60.0, "Writing samples provided"),
            "adaptability": dim("Adaptability", channels["portfolio"], 55.0, "Portfolio provided"),
            "ownership": dim("Ownership", channels["extracurricular"], 55.0, "Extracurricular provided"),
        }

    @staticmethod
    def _comp_flags(comp_fit: CompFit) -> list[RiskFlag]:
        if comp_fit.status == "above_band":
            return [RiskFlag(type="CompMismatch", severity="medium", description="Salary expectation above the budget band")]
        if comp_fit.status == "below_band":
            return [RiskFlag(type="RetentionRisk", severity="low", description="Salary expectation below the band")]
        return []


__all__ = ["FallbackConfig", "FallbackSynthesizer"]
