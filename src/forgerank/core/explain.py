"\"\"\"Human-readable reasons, risk flags and interview guidance for one candidate.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from .models import (
    CompFit,
    ContextDimension,
    EvidenceItem,
    ExplanationSummary,
    Explanations,
    GateStatus,
    InterviewGuidance,
    InterviewQuestion,
    ProofTier,
    RiskFlag,
    SkillScore,
)


@dataclass
class ExplainConfig:
    max_reasons: int = 3
    max_questions: int = 4
    strong_dimension: float = 60.0


@dataclass(frozen=True, slots=True)
class ExplanationBundle:
    explanations: Explanations
    explanation: ExplanationSummary
    risks: list[RiskFlag]
    interview_guidance: InterviewGuidance


class ExplanationBuilder:
    """Turn the numbers of one analysis into reasons a reviewer can check.

    Every bundle carries at least one risk string and one risk flag, so no
    record reaches the boundary without an explanation.
    """

    def __init__(self, *, config: ExplainConfig | None = None) -> None:
        self._config = config or ExplainConfig()

    def build(
        self,
        *,
        name: str,
        role_title: str,
        skills: Sequence[SkillScore],
        evidence: Sequence[EvidenceItem],
        context: Mapping[str, ContextDimension],
        comp_fit: CompFit,
        capability: float,
        forge: float,
        tau: float,
        status: GateStatus,
        verdict: str,
        velocity_bonus: float,
        velocity_status: str | None,
    ) -> ExplanationBundle:
        claims_only = self._claims_only_skills(skills, evidence)
        missing_proof = [
            f"Verifiable artifact for {skill.name}" for skill in skills if skill.verified_score <= 0
        ]
        explanations = Explanations(
            top_reasons=self._top_reasons(skills, comp_fit, velocity_bonus),
            risks=self._risk_lines(skills, comp_fit, capability, tau, claims_only),
            missing_proof=missing_proof,
        )
        proven = [skill for skill in skills if skill.status == "Proven"]
        summary = ExplanationSummary(
            summary=(
                f"{name}: {len(proven)} of {len(skills)} skill(s) proven; verified capability "
                f"{capability:.2f} against tau {tau:.2f} ({status})."
            ),
            one_liner=f"{verdict} - FORGE {forge:.2f}, {len(proven)}/{len(skills)} skills proven",
            strengths=self._strengths(proven, context),
            weaknesses=self._weaknesses(skills, context),
            flags=self._flags(comp_fit, claims_only, velocity_status),
        )
        return ExplanationBundle(
            explanations=explanations,
            explanation=summary,
            risks=self._risk_flags(skills, comp_fit, claims_only, velocity_status),
            interview_guidance=self._guidance(skills, comp_fit, role_title, missing_proof),
        )

    def _top_reasons(
        self,
        skills: Sequence[SkillScore],
        comp_fit: CompFit,
        velocity_bonus: float,
    ) -> list[str]:
        reasons: list[str] = []
        for skill in sorted(skills, key=lambda s: -s.verified_score):
            if skill.verified_score <= 0:
                break
            reasons.append(
                f"{skill.name}: {skill.status.lower()} at {skill.score:.0f}/100 "
                f"(best proof {skill.tier.value})"
            )
        if velocity_bonus > 0:
            reasons.append(f"Growing activity trend (+{velocity_bonus:g} learning velocity)")
        if comp_fit.status == "in_band":
            reasons.append("Salary expectation within budget band")
        if not reasons:
            reasons.append("No verified strengths found")
        return reasons[: self._config.max_reasons]

    @staticmethod
    def _risk_lines(
        skills: Sequence[SkillScore],
        comp_fit: CompFit,
        capability: float,
        tau: float,
        claims_only: Sequence[str],
    ) -> list[str]:
        risks: list[str] = []
        for skill in skills:
            if skill.status == "Fail":
                risks.append(f"Contradicting evidence for required skill {skill.name}")
            elif skill.status == "Missing" and skill.is_required:
                risks.append(f"Missing required skill {skill.name}")
        for skill_name in claims_only:
            risks.append(f"{skill_name} rests on unverified claims")
        if capability < tau:
            risks.append(f"Verified capability {capability:.2f} below tau {tau:.2f}")
        if comp_fit.status == "above_band":
            risks.append("Salary expectation above budget band")
        elif comp_fit.status == "below_band":
            risks.append("Salary expectation below band (retention risk)")
        if not risks:
            risks.append("No major risks identified")
        return risks

    def _strengths(
        self,
        proven: Sequence[SkillScore],
        context: Mapping[str, ContextDimension],
    ) -> list[str]:
        strengths = [f"Proven {skill.name}" for skill in proven]
        strengths.extend(
            f"Strong {dim.name.lower()} signals"
            for dim in context.values()
            if dim.score >= self._config.strong_dimension
        )
        return strengths

    @staticmethod
    def _weaknesses(
        skills: Sequence[SkillScore],
        context: Mapping[str, ContextDimension],
    ) -> list[str]:
        weaknesses = [
            f"{skill.name}: {skill.reason}" for skill in skills if skill.status != "Proven"
        ]
        weaknesses.extend(
            f"Limited {dim.name.lower()} data" for dim in context.values() if dim.raw == 0
        )
        return weaknesses

    @staticmethod
    def _flags(
        comp_fit: CompFit,
        claims_only: Sequence[str],
        velocity_status: str | None,
    ) -> list[str]:
        flags = [f"Claims-only evidence for {name}" for name in claims_only]
        if comp_fit.status == "above_band":
            flags.append("Compensation above band")
        if comp_fit.detail.get("retention_risk"):
            flags.append("Retention risk")
        if velocity_status == "insufficient_history":
            flags.append("Insufficient activity history")
        return flags

    @staticmethod
    def _risk_flags(
        skills: Sequence[SkillScore],
        comp_fit: CompFit,
        claims_only: Sequence[str],
        velocity_status: str | None,
    ) -> list[RiskFlag]:
        flags: list[RiskFlag] = []
        gaps = [skill for skill in skills if skill.verified_score <= 0]
        if gaps:
            required_gap = any(skill.is_required for skill in gaps)
            flags.append(
                RiskFlag(
                    type="ProofGap",
                    severity="high" if required_gap else "medium",
                    description="No verified proof for " + ", ".join(s.name for s in gaps),
                )
            )
        if claims_only:
            flags.append(
                RiskFlag(
                    type="ClaimsOnly",
                    severity="medium",
                    description="Self-reported only: " + ", ".join(claims_only),
                )
            )
        if comp_fit.status == "above_band":
            flags.append(
                RiskFlag(
                    type="CompMismatch",
                    severity="medium",
                    description="Salary expectation above the budget band",
                )
            )
        elif comp_fit.status == "below_band":
            flags.append(
                RiskFlag(
                    type="RetentionRisk",
                    severity="low",
                    description="Salary expectation below the band; may leave for a better offer",
                )
            )
        if velocity_status == "insufficient_history":
            flags.append(
                RiskFlag(
                    type="LowActivity",
                    severity="low",
                    description="Fewer than three active months in the recent activity window",
                )
            )
        if not flags:
            flags.append(
                RiskFlag(type="None", severity="low", description="No significant risks identified")
            )
        return flags

    def _guidance(
        self,
        skills: Sequence[SkillScore],
        comp_fit: CompFit,
        role_title: str,
        missing_proof: Sequence[str],
    ) -> InterviewGuidance:
        questions: list[InterviewQuestion] = []
        gaps = [skill for skill in skills if skill.status != "Proven"]
        gaps.sort(key=lambda s: (not s.is_required, -s.weight))
        for skill in gaps:
            questions.append(
                InterviewQuestion(
                    id=f"q{len(questions) + 1}",
                    type="gap-probe",
                    question=f"Walk me through a specific project where you used {skill.name}.",
                    context=skill.reason,
                    expected_depth="Concrete example with outcomes and trade-offs",
                )
            )
        for skill in skills:
            if skill.status != "Proven":
                continue
            questions.append(
                InterviewQuestion(
                    id=f"q{len(questions) + 1}",
                    type="depth-check",
                    question=f"What was the hardest {skill.name} problem you solved recently, and how?",
                    context=f"Proven via {skill.tier.value} evidence",
                    expected_depth="Design decisions and debugging detail",
                )
            )
        questions = questions[: self._config.max_questions]

        areas = list(missing_proof)
        if comp_fit.status in ("above_band", "below_band"):
            areas.append("Compensation expectations")
        if not areas:
            areas.append("Depth of ownership on recent work")

        tasks = [f"Short {skill.name} exercise" for skill in gaps if skill.is_required][:2]
        if not tasks:
            tasks.append(f"{role_title} pairing session")
        return InterviewGuidance(questions=questions, areas_to_probe=areas, suggested_tasks=tasks)

    @staticmethod
    def _claims_only_skills(
        skills: Sequence[SkillScore],
        evidence: Sequence[EvidenceItem],
    ) -> list[str]:
        names: list[str] = []
        for skill in skills:
            own = [item for item in evidence if item.skill.lower() == skill.name.lower()]
            if own and all(item.tier == ProofTier.CLAIM_ONLY for item in own):
                names.append(skill.name)
        return names


__all__ = ["ExplainConfig", "ExplanationBuilder", "ExplanationBundle"]
