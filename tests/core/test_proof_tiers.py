from __future__ import annotations

import pytest

from forgerank.core.models import EvidenceItem, ProofTier
from forgerank.core.tiers import ProofTierClassifier, TierConfig, classify


def build_item(
    skill: str,
    source: str,
    *,
    link: bool = False,
    detail: bool = False,
    corroborations: int = 0,
    contradicts: bool = False,
) -> EvidenceItem:
    return EvidenceItem(
        id=f"ev_{source}_{skill.lower()}",
        skill=skill,
        source=source,
        description=f"{source} evidence",
        reliability=0.5,
        has_link=link,
        has_detail=detail,
        corroborations=corroborations,
        contradicts=contradicts,
    )


@pytest.mark.parametrize(
    ("has_link", "has_detail", "corroborations", "expected"),
    [
        (True, True, 2, ProofTier.VERIFIED_ARTIFACT),
        (True, False, 1, ProofTier.VERIFIED_ARTIFACT),
        (True, True, 0, ProofTier.STRONG_SIGNAL),
        (True, False, 0, ProofTier.WEAK_SIGNAL),
        (False, True, 3, ProofTier.WEAK_SIGNAL),
        (False, False, 0, ProofTier.CLAIM_ONLY),
    ],
)
def test_classify_is_a_function_of_shape(has_link, has_detail, corroborations, expected):
    assert classify(has_link, has_detail, corroborations) is expected


def test_corroboration_boost_applies_exactly_once():
    classifier = ProofTierClassifier()
    items = [
        build_item("Python", "resume", detail=True),
        build_item("Python", "repository", link=True, detail=True, corroborations=2),
        build_item("Python", "repository", link=True, detail=True, corroborations=3),
    ]

    first = classifier.classify_items(items)
    resume = first[0]
    assert resume.tier is ProofTier.STRONG_SIGNAL
    assert resume.boosted is True

    second = classifier.classify_items(first)
    assert second[0].tier is ProofTier.STRONG_SIGNAL
    assert [item.tier for item in second] == [item.tier for item in first]


def test_related_skill_artifact_corroborates_claim():
    classifier = ProofTierClassifier()
    items = [
        build_item("JavaScript", "linkedin"),
        build_item("React", "repository", link=True, detail=True, corroborations=1),
    ]

    tiered = classifier.classify_items(items)

    assert tiered[0].tier is ProofTier.WEAK_SIGNAL
    assert tiered[0].boosted is True


def test_no_boost_without_verified_anchor():
    classifier = ProofTierClassifier()
    items = [
        build_item("Go", "resume", detail=True),
        build_item("Go", "portfolio", link=True, detail=True),
    ]

    tiered = classifier.classify_items(items)

    assert tiered[0].tier is ProofTier.WEAK_SIGNAL
    assert tiered[0].boosted is False
    assert tiered[1].tier is ProofTier.STRONG_SIGNAL


def test_contradicting_claim_is_zeroed_and_never_boosted():
    classifier = ProofTierClassifier()
    items = [
        build_item("Rust", "resume", contradicts=True),
        build_item("Rust", "repository", link=True, detail=True, corroborations=1),
    ]

    tiered = classifier.classify_items(items)

    assert tiered[0].tier is ProofTier.CLAIM_ONLY
    assert tiered[0].reliability == 0.0
    assert tiered[0].boosted is False


def test_claim_multiplier_follows_configured_fraction():
    assert ProofTierClassifier().multiplier(ProofTier.CLAIM_ONLY) == pytest.approx(0.15)
    classifier = ProofTierClassifier(config=TierConfig(claims_count_fraction=0.05))
    assert classifier.multiplier(ProofTier.CLAIM_ONLY) == pytest.approx(0.05)
    assert classifier.multiplier(ProofTier.NONE) == 0.0


def test_claim_fraction_above_cap_is_rejected():
    with pytest.raises(ValueError):
        TierConfig(claims_count_fraction=0.3)


def test_related_sources_follow_adjacency():
    classifier = ProofTierClassifier(config=TierConfig(adjacency={"React": ("JavaScript",)}))

    assert classifier.related_sources("javascript") == ["react"]
    assert classifier.is_related("react", "JavaScript") is True
    assert classifier.related_sources("react") == []


def test_framework_claim_is_corroborated_by_its_language_artifact():
    classifier = ProofTierClassifier()
    items = [
        build_item("React", "resume"),
        build_item("JavaScript", "repository", link=True, detail=True, corroborations=1),
    ]

    tiered = classifier.classify_items(items)

    assert tiered[0].tier is ProofTier.WEAK_SIGNAL
    assert tiered[0].boosted is True
