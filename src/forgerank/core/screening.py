"\"\"\"Per-candidate scoring: evidence, tiers, CS, XS, velocity and the gate.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..schemas import ActivityRecord, JobConfig, ProfileSummary, SkillRequirement
from .evaluators import (
    CapabilityScorer,
    CompensationEvaluator,
    ContextScorer,
    EvidenceNormalizer,
    LearningVelocityEvaluator,
)
from .explain import ExplanationBuilder
from .gate import GateEngine
from .models import CandidateAnalysis, DataQuality, EvaluationResult, ResolvedCandidate
from .tiers import ProofTierClassifier


@dataclass(frozen=True, slots=True)
class ScoringContext:
    """Read-only request scope shared by every candidate of a batch."""

    skills: tuple[SkillRequirement, ...]
    tau: float
    job_config: JobConfig
    as_of: str | None = None

    @property
    def role_title(self) -> str:
        return self.job_config.role_title or "Software Engineer"


class ScreeningCore:
    """Coordinates evaluators for one candidate whose profile was fetched."""

    def __init__(
        self,
        *,
        normalizer: EvidenceNormalizer,
        classifier: ProofTierClassifier,
        capability: CapabilityScorer,
        context: ContextScorer,
        compensation: CompensationEvaluator,
        velocity: LearningVelocityEvaluator,
        gate: GateEngine,
        explainer: ExplanationBuilder | None = None,
    ) -> None:
        self._normalizer = normalizer
        self._classifier = classifier
        self._capability = capability
        self._context = context
        self._compensation = compensation
        self._velocity = velocity
        self._gate = gate
        self._explainer = explainer or ExplanationBuilder()

    @property
    def gate(self) -> GateEngine:
        return self._gate

    def skill_terms(self, skills: Sequence[SkillRequirement]) -> list[str]:
        """Requested skills followed by the adjacent skills that can lend them credit."""
        terms: list[str] = []
        seen: set[str] = set()
        for skill in skills:
            for term in (skill.name, *self._classifier.related_sources(skill.name)):
                if term.lower() not in seen:
                    seen.add(term.lower())
                    terms.append(term)
        return terms

    def evaluate(
        self,
        candidate: ResolvedCandidate,
        ctx: ScoringContext,
        *,
        profile: ProfileSummary,
        activity: Sequence[ActivityRecord] | None,
    ) -> CandidateAnalysis:
        """Score a candidate; ``activity=None`` means the activity fetch failed."""
        signals = candidate.signals
        raw_items = self._normalizer.collect(
            skill_terms=self.skill_terms(ctx.skills),
            profile=profile,
            signals=signals,
        )
        evidence = self._classifier.classify_items(raw_items)

        capability = self._capability.score(ctx.skills, evidence)
        comp_fit = self._compensation.evaluate(
            candidate.salary_expectation, ctx.job_config.budget
        )
        context = self._context.score(profile=profile, signals=signals, comp_fit=comp_fit)
        velocity = self._velocity.evaluate(
            activity or [], profile.repositories, as_of=ctx.as_of
        )
        bonus = velocity.bonus if activity is not None else 0.0
        data_quality: DataQuality = "full" if activity is not None else "partial"

        capability_score = round(capability.verified / 100.0, 4)
        forge = self._gate.forge_score(capability_score, context.xs, bonus)
        status = self._gate.classify(capability_score, forge, ctx.tau)
        verdict = self._gate.verdict(status, forge)

        declared = candidate.structured.name if candidate.structured is not None else None
        name = declared or profile.name or profile.login
        bundle = self._explainer.build(
            name=name,
            role_title=ctx.role_title,
            skills=capability.skills,
            evidence=evidence,
            context=context.dimensions,
            comp_fit=comp_fit,
            capability=capability_score,
            forge=forge,
            tau=ctx.tau,
            status=status,
            verdict=verdict,
            velocity_bonus=bonus,
            velocity_status=str(velocity.metadata.get("status")) if activity is not None else None,
        )

        evaluations: list[EvaluationResult] = [
            self._capability.to_evaluation(capability),
            self._compensation.to_evaluation(comp_fit),
            self._context.to_evaluation(context),
            self._velocity.to_evaluation(velocity),
            self._gate.to_evaluation(
                capability=capability_score,
                context=context.xs,
                bonus=bonus,
                tau=ctx.tau,
                status=status,
            ),
        ]

        confidence = sum(
            capability.weights[skill.name] * skill.confidence for skill in capability.skills
        )
        portfolio = signals.portfolio_url if signals and signals.portfolio_url else profile.blog

        return CandidateAnalysis(
            id=candidate.candidate_id,
            name=name,
            identifier=profile.login,
            profile_url=profile.html_url,
            portfolio=portfolio or None,
            avatar=profile.avatar_url,
            headline=profile.bio or f"{candidate.role_type or ctx.role_title} candidate",
            capability_score=capability_score,
            capability_total=round(capability.total / 100.0, 4),
            context_score=context.xs,
            forge_score=forge,
            learning_velocity_bonus=bonus,
            gate_status=status,
            tau=ctx.tau,
            data_quality=data_quality,
            verdict=verdict,
            confidence=round(confidence * 100.0, 1),
            skills=capability.skills,
            context=context.dimensions,
            comp_fit=comp_fit,
            evidence=evidence,
            explanations=bundle.explanations,
            explanation=bundle.explanation,
            risks=bundle.risks,
            interview_guidance=bundle.interview_guidance,
            activity_trend=velocity.trend if activity is not None else [0] * len(velocity.trend),
            evaluations=evaluations,
            input_index=candidate.index,
        )


__all__ = ["ScoringContext", "ScreeningCore"]
