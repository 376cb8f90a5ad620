from __future__ import annotations

import pytest

from forgerank.calibration import MultiplierWeightAdjuster
from forgerank.core.evaluators import CompensationEvaluator, EvidenceNormalizer
from forgerank.core.fallback import FallbackSynthesizer
from forgerank.core.gate import GateEngine
from forgerank.core.models import ProofTier, ResolvedCandidate
from forgerank.core.screening import ScoringContext
from forgerank.errors import InternalScoringFault
from forgerank.schemas import Budget, CandidateInput, JobConfig, SkillRequirement


@pytest.fixture
def synthesizer() -> FallbackSynthesizer:
    return FallbackSynthesizer(
        normalizer=EvidenceNormalizer(), compensation=CompensationEvaluator(), gate=GateEngine()
    )


def build_context(*skills: SkillRequirement, budget: Budget | None = None) -> ScoringContext:
    return ScoringContext(
        skills=skills or (SkillRequirement(name="TypeScript", weight=1.0),),
        tau=0.4,
        job_config=JobConfig(role_title="Frontend Engineer", budget=budget),
    )


def build_candidate(index: int = 0, **fields) -> ResolvedCandidate:
    structured = CandidateInput.model_validate(fields)
    return ResolvedCandidate(
        index=index,
        label=structured.name or f"candidate {index}",
        candidate_id=f"cand_{index}",
        identifier=None,
        identifier_error="No profile identifier provided",
        structured=structured,
    )


def test_ceilings_grow_with_channels_and_cap(synthesizer):
    assert synthesizer.ceilings(1) == (0.5, 0.58)
    assert synthesizer.ceilings(2) == (0.6, 0.66)
    assert synthesizer.ceilings(5) == (0.7, 0.8)


def test_mentioned_skill_is_scored_at_the_ceiling(synthesizer):
    candidate = build_candidate(
        name="Dana", signals={"resumeText": "Led a TypeScript migration for 3 teams."}
    )

    analysis = synthesizer.synthesize(candidate, build_context())

    assert analysis.capability_score == pytest.approx(0.5)
    assert analysis.context_score == pytest.approx(0.58)
    assert analysis.forge_score == pytest.approx(0.29)
    assert analysis.gate_status == "ranked"
    assert analysis.verdict == "Review"
    assert analysis.data_quality == "partial"
    assert analysis.learning_velocity_bonus == 0.0
    assert analysis.skills[0].verified_score == pytest.approx(50.0)
    assert all(item.tier is ProofTier.CLAIM_ONLY for item in analysis.evidence)


def test_unmentioned_skills_stay_filtered(synthesizer):
    candidate = build_candidate(
        name="Eli", signals={"resumeText": "Ran a bakery for ten years."}
    )

    analysis = synthesizer.synthesize(candidate, build_context())

    assert analysis.capability_score == 0.0
    assert analysis.gate_status == "filtered"
    assert analysis.verdict == "Needs More Proof"
    assert analysis.data_quality == "partial"
    assert analysis.skills[0].reason == "No verifiable profile and not mentioned in secondary signals"


def test_failure_reason_is_carried_into_summary_and_risks(synthesizer):
    candidate = build_candidate(
        name="Fay",
        signals={"portfolioUrl": "https://fay.dev", "writingLinks": ["https://blog.fay.dev/a"]},
    )

    analysis = synthesizer.synthesize(
        candidate, build_context(), failure="API rate limit exceeded"
    )

    assert analysis.explanation.summary.startswith("Profile fetch failed: API rate limit exceeded.")
    assert analysis.explanations.risks[0] == "API rate limit exceeded"
    assert analysis.portfolio == "https://fay.dev"
    assert analysis.confidence == pytest.approx(30.0)
    assert {item.id for item in analysis.evidence} >= {"ev_portfolio", "ev_writing"}
    assert analysis.context["adaptability"].score == 55.0
    assert analysis.context["communication"].score == 60.0
    assert analysis.context["teamwork"].source == "Limited data"


def test_compensation_mismatch_lowers_context(synthesizer):
    candidate = build_candidate(
        name="Gus",
        salaryExpectation={"target": 200_000},
        signals={"resumeText": "Shipped TypeScript apps."},
    )
    ctx = build_context(budget=Budget(min=100_000, max=150_000))

    analysis = synthesizer.synthesize(candidate, ctx)

    assert analysis.comp_fit.status == "above_band"
    assert analysis.context_score == pytest.approx(round(0.58 * 0.92, 4))
    assert any(flag.type == "CompMismatch" for flag in analysis.risks)


def test_synthesize_requires_a_signal(synthesizer):
    candidate = build_candidate(name="Hal")

    with pytest.raises(ValueError):
        synthesizer.synthesize(candidate, build_context())


def test_failure_record_is_zero_and_explains_itself(synthesizer):
    candidate = ResolvedCandidate(index=3, label="ghost", candidate_id="cand_ghost", identifier="ghost")
    ctx = build_context(
        SkillRequirement(name="Python", weight=2.0), SkillRequirement(name="Go", weight=1.0)
    )

    record = synthesizer.failure_record(candidate, ctx, reason="Profile not found: ghost")

    assert record.id == "cand_ghost_error"
    assert record.forge_score == 0.0
    assert record.gate_status == "filtered"
    assert record.data_quality == "fallback"
    assert record.verdict == "Reject"
    assert record.input_index == 3
    assert [skill.status for skill in record.skills] == ["Missing", "Missing"]
    assert all(dim.source == "N/A" for dim in record.context.values())
    assert record.explanation.summary == "Error: Profile not found: ghost"
    assert record.risks[0].description == "Profile not found: ghost"


def test_zero_weights_raise_internal_fault():
    synthesizer = FallbackSynthesizer(
        normalizer=EvidenceNormalizer(),
        compensation=CompensationEvaluator(),
        gate=GateEngine(),
        weight_adjuster=MultiplierWeightAdjuster({"typescript": 0.0}),
    )
    candidate = build_candidate(name="Ivy", signals={"resumeText": "TypeScript."})

    with pytest.raises(InternalScoringFault):
        synthesizer.synthesize(candidate, build_context())
