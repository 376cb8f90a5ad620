from __future__ import annotations

import pytest

from forgerank.core import (
    CapabilityScorer,
    CompensationEvaluator,
    ContextScorer,
    Evaluator,
    EvidenceNormalizer,
    GateEngine,
    LearningVelocityEvaluator,
    ProofTierClassifier,
    ResolvedCandidate,
    ScoringContext,
    ScreeningCore,
)
from forgerank.core.models import to_payload
from forgerank.schemas import (
    ActivityRecord,
    CandidateInput,
    JobConfig,
    ProfileSummary,
    RepositoryRecord,
    SkillRequirement,
)


@pytest.fixture
def core() -> ScreeningCore:
    classifier = ProofTierClassifier()
    return ScreeningCore(
        normalizer=EvidenceNormalizer(),
        classifier=classifier,
        capability=CapabilityScorer(classifier=classifier),
        context=ContextScorer(),
        compensation=CompensationEvaluator(),
        velocity=LearningVelocityEvaluator(),
        gate=GateEngine(),
    )


@pytest.fixture
def ctx() -> ScoringContext:
    return ScoringContext(
        skills=(
            SkillRequirement(name="Python", weight=2.0),
            SkillRequirement(name="TypeScript", weight=1.0),
        ),
        tau=0.4,
        job_config=JobConfig(role_title="Full Stack Engineer"),
        as_of="2024-06-15",
    )


def build_profile() -> ProfileSummary:
    return ProfileSummary(
        login="alice",
        name="Alice Liddell",
        html_url="https://github.com/alice",
        followers=12,
        repositories=[
            RepositoryRecord(
                name="fastapi-shop",
                html_url="https://github.com/alice/fastapi-shop",
                language="Python",
                topics=["python", "fastapi"],
                stargazers_count=14,
            ),
            RepositoryRecord(
                name="ts-widgets",
                html_url="https://github.com/alice/ts-widgets",
                language="TypeScript",
                stargazers_count=2,
            ),
        ],
    )


def build_activity() -> list[ActivityRecord]:
    return [
        ActivityRecord(occurred_at=f"2024-{month:02d}-05T09:00:00Z", kind="push", count=month)
        for month in range(1, 7)
    ]


def alice() -> ResolvedCandidate:
    return ResolvedCandidate(index=0, label="alice", candidate_id="cand_alice", identifier="alice")


def test_skill_terms_include_related_sources(core):
    terms = core.skill_terms([SkillRequirement(name="Python", weight=1.0)])

    assert terms[0] == "Python"
    assert "fastapi" in terms
    assert len(terms) == len({term.lower() for term in terms})


def test_verified_repositories_pass_the_gate(core, ctx):
    analysis = core.evaluate(alice(), ctx, profile=build_profile(), activity=build_activity())

    assert analysis.capability_score == pytest.approx(0.9)
    assert analysis.gate_status == "ranked"
    assert analysis.data_quality == "full"
    assert analysis.learning_velocity_bonus == pytest.approx(7.0)
    assert analysis.activity_trend == [1, 2, 3, 4, 5, 6]
    assert analysis.forge_score == pytest.approx(
        GateEngine.forge_score(analysis.capability_score, analysis.context_score, 7.0)
    )
    assert [s.status for s in analysis.skills] == ["Proven", "Proven"]
    assert [e.method for e in analysis.evaluations] == [
        "capability",
        "compensation",
        "context",
        "learning_velocity",
        "gate",
    ]
    assert analysis.name == "Alice Liddell"
    assert analysis.identifier == "alice"


def test_failed_activity_fetch_degrades_to_partial(core, ctx):
    analysis = core.evaluate(alice(), ctx, profile=build_profile(), activity=None)

    assert analysis.data_quality == "partial"
    assert analysis.learning_velocity_bonus == 0.0
    assert analysis.activity_trend == [0] * 6
    assert analysis.capability_score == pytest.approx(0.9)


def test_claims_alone_never_pass_the_gate(core, ctx):
    candidate = ResolvedCandidate(
        index=1,
        label="bob",
        candidate_id="cand_bob",
        identifier="bob",
        structured=CandidateInput.model_validate(
            {
                "name": "Bob",
                "signals": {"resumeText": "Python expert. TypeScript expert. Python and TypeScript guru."},
            }
        ),
    )
    profile = ProfileSummary(login="bob", repositories=[RepositoryRecord(name="dotfiles", language="Shell")])

    analysis = core.evaluate(candidate, ctx, profile=profile, activity=[])

    assert analysis.capability_score == 0.0
    assert analysis.capability_total > 0.0
    assert analysis.gate_status == "filtered"
    assert analysis.name == "Bob"
    assert analysis.explanations.missing_proof


def test_evaluation_is_deterministic(core, ctx):
    first = core.evaluate(alice(), ctx, profile=build_profile(), activity=build_activity())
    second = core.evaluate(alice(), ctx, profile=build_profile(), activity=build_activity())

    assert to_payload(first) == to_payload(second)
    payload = to_payload(first)
    assert payload["forgeScore"] == first.forge_score
    assert payload["skills"][0]["verifiedScore"] == first.skills[0].verified_score


def test_scoring_components_share_the_evaluator_contract():
    classifier = ProofTierClassifier()
    components = [
        CapabilityScorer(classifier=classifier),
        CompensationEvaluator(),
        ContextScorer(),
        LearningVelocityEvaluator(),
    ]

    assert all(isinstance(component, Evaluator) for component in components)
    assert len({component.method for component in components}) == len(components)


def test_one_repository_counts_once_for_a_skill_and_its_framework(core, ctx):
    profile = ProfileSummary(
        login="fred",
        repositories=[
            RepositoryRecord(name="flask-api", html_url="https://github.com/fred/flask-api", language="Python")
        ],
    )
    candidate = ResolvedCandidate(index=0, label="fred", candidate_id="cand_fred", identifier="fred")

    analysis = core.evaluate(candidate, ctx, profile=profile, activity=[])

    python = analysis.skills[0]
    assert python.score == pytest.approx(90.0)
    assert python.related_credit == 0.0
    assert {item.skill for item in analysis.evidence} == {"Python", "flask"}
