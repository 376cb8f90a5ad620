from __future__ import annotations

from forgerank.core.explain import ExplainConfig, ExplanationBuilder
from forgerank.core.models import CompFit, ContextDimension, EvidenceItem, ProofTier, SkillScore


def skill(name: str, status: str, verified: float, *, tier=ProofTier.VERIFIED_ARTIFACT, required=True):
    return SkillScore(
        name=name,
        score=verified or 7.5,
        verified_score=verified,
        confidence=0.5,
        evidence_count=1,
        related_credit=0.0,
        status=status,
        tier=tier,
        weight=1.0,
        is_required=required,
        reason="test reason",
    )


def dims(score: float = 30.0, raw: float = 0.0) -> dict[str, ContextDimension]:
    return {
        key: ContextDimension(name=key.capitalize(), score=score, raw=raw, source="x", confidence=0.5)
        for key in ("teamwork", "communication", "adaptability", "ownership")
    }


def build(builder: ExplanationBuilder, **overrides):
    kwargs = dict(
        name="Alice",
        role_title="Backend Engineer",
        skills=[skill("Python", "Proven", 90.0)],
        evidence=[],
        context=dims(70.0, 35.0),
        comp_fit=CompFit(status="in_band", label="In Band", xs_multiplier=1.0),
        capability=0.9,
        forge=0.63,
        tau=0.4,
        status="ranked",
        verdict="Strong Hire",
        velocity_bonus=3.0,
        velocity_status="ok",
    )
    kwargs.update(overrides)
    return builder.build(**kwargs)


def test_strong_candidate_has_no_major_risks():
    bundle = build(ExplanationBuilder())

    assert bundle.explanations.risks == ["No major risks identified"]
    assert [flag.type for flag in bundle.risks] == ["None"]
    assert bundle.explanations.top_reasons[0].startswith("Python: proven at 90/100")
    assert bundle.explanation.summary == (
        "Alice: 1 of 1 skill(s) proven; verified capability 0.90 against tau 0.40 (ranked)."
    )
    assert "Strong teamwork signals" in bundle.explanation.strengths
    assert bundle.interview_guidance.questions[0].type == "depth-check"
    assert bundle.interview_guidance.suggested_tasks == ["Backend Engineer pairing session"]


def test_claims_only_candidate_is_flagged():
    claim = EvidenceItem(
        id="ev_resume_go_0",
        skill="Go",
        source="resume",
        description="Resume mention",
        reliability=0.5,
        tier=ProofTier.CLAIM_ONLY,
    )
    bundle = build(
        ExplanationBuilder(),
        skills=[skill("Go", "Missing", 0.0, tier=ProofTier.CLAIM_ONLY)],
        evidence=[claim],
        context=dims(),
        comp_fit=CompFit(status="above_band", label="Above Band", xs_multiplier=0.92),
        capability=0.0,
        forge=0.0,
        status="filtered",
        verdict="No Hire",
        velocity_bonus=0.0,
        velocity_status="insufficient_history",
    )

    flag_types = [flag.type for flag in bundle.risks]
    assert flag_types == ["ProofGap", "ClaimsOnly", "CompMismatch", "LowActivity"]
    assert bundle.risks[0].severity == "high"
    assert bundle.explanations.missing_proof == ["Verifiable artifact for Go"]
    assert bundle.explanations.top_reasons == ["No verified strengths found"]
    assert "Go rests on unverified claims" in bundle.explanations.risks
    assert bundle.interview_guidance.questions[0].type == "gap-probe"
    assert bundle.interview_guidance.suggested_tasks == ["Short Go exercise"]
    assert "Compensation expectations" in bundle.interview_guidance.areas_to_probe


def test_question_count_is_capped():
    skills = [skill(f"Skill{idx}", "Weak", 30.0, tier=ProofTier.WEAK_SIGNAL) for idx in range(6)]

    bundle = build(ExplanationBuilder(config=ExplainConfig(max_questions=2)), skills=skills)

    assert [q.id for q in bundle.interview_guidance.questions] == ["q1", "q2"]
