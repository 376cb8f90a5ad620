"\"\"\"Proof tiers and the deterministic tier classifier.\"\"\""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from .models import EvidenceItem, ProofTier

# Share of nominal value a bare claim adds to CS_total. Claims never count toward CS_verified.
CLAIMS_COUNT_FRACTION = 0.15

TEXT_SOURCES = frozenset({"resume", "linkedin", "extracurricular"})


DEFAULT_ADJACENCY: dict[str, tuple[str, ...]] = {
    "react": ("javascript", "typescript"),
    "next.js": ("react", "javascript", "typescript"),
    "vue": ("javascript",),
    "angular": ("typescript", "javascript"),
    "svelte": ("javascript",),
    "node.js": ("javascript",),
    "typescript": ("javascript",),
    "django": ("python",),
    "flask": ("python",),
    "fastapi": ("python",),
    "pandas": ("python",),
    "rails": ("ruby",),
    "spring": ("java",),
    "kotlin": ("java",),
    "terraform": ("infrastructure as code",),
}


@dataclass
class TierConfig:
    """Multipliers and related-skill policy."""

    claims_count_fraction: float = CLAIMS_COUNT_FRACTION
    related_discount: float = 0.6
    adjacency: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_ADJACENCY)
    )

    def __post_init__(self) -> None:
        if not 0.0 <= self.claims_count_fraction <= CLAIMS_COUNT_FRACTION:
            raise ValueError(
                f"claims_count_fraction must be within [0, {CLAIMS_COUNT_FRACTION}]"
            )
        if not 0.0 <= self.related_discount <= 1.0:
            raise ValueError("related_discount must be within [0, 1]")
        self.adjacency = {
            key.lower(): tuple(target.lower() for target in targets)
            for key, targets in self.adjacency.items()
        }


def classify(has_link: bool, has_detail: bool, corroborations: int) -> ProofTier:
    """Map evidence shape to a tier."""
    if has_link and corroborations >= 1:
        return ProofTier.VERIFIED_ARTIFACT
    if has_link and has_detail:
        return ProofTier.STRONG_SIGNAL
    if has_link or has_detail:
        return ProofTier.WEAK_SIGNAL
    return ProofTier.CLAIM_ONLY


class ProofTierClassifier:
    """Assigns tiers, applies the corroboration boost and resolves related-skill sources."""

    method = "proof_tiers"

    def __init__(self, *, config: TierConfig | None = None) -> None:
        self._config = config or TierConfig()

    @property
    def config(self) -> TierConfig:
        return self._config

    def multiplier(self, tier: ProofTier) -> float:
        return {
            ProofTier.VERIFIED_ARTIFACT: 1.0,
            ProofTier.STRONG_SIGNAL: 0.7,
            ProofTier.WEAK_SIGNAL: 0.4,
            ProofTier.CLAIM_ONLY: self._config.claims_count_fraction,
            ProofTier.NONE: 0.0,
        }[tier]

    def related_sources(self, skill: str) -> list[str]:
        """Skills whose evidence partially satisfies ``skill``."""
        target = skill.lower()
        return [
            source
            for source, targets in self._config.adjacency.items()
            if target in targets and source != target
        ]

    def is_related(self, source: str, target: str) -> bool:
        return target.lower() in self._config.adjacency.get(source.lower(), ())

    def classify_items(self, items: Iterable[EvidenceItem]) -> list[EvidenceItem]:
        """Assign tiers from shape, then apply the one-time corroboration boost."""
        tiered = [self._with_shape_tier(item) for item in items]
        return self.apply_corroboration(tiered)

    def apply_corroboration(self, items: list[EvidenceItem]) -> list[EvidenceItem]:
        anchors: dict[str, list[EvidenceItem]] = {}
        for item in items:
            if item.tier == ProofTier.VERIFIED_ARTIFACT and item.source not in TEXT_SOURCES:
                anchors.setdefault(item.skill.lower(), []).append(item)

        boosted: list[EvidenceItem] = []
        for item in items:
            if self._eligible_for_boost(item, anchors):
                boosted.append(replace(item, tier=item.tier.upgraded(), boosted=True))
            else:
                boosted.append(item)
        return boosted

    def _eligible_for_boost(
        self,
        item: EvidenceItem,
        anchors: Mapping[str, list[EvidenceItem]],
    ) -> bool:
        if item.boosted or item.contradicts or item.source not in TEXT_SOURCES:
            return False
        if item.tier in (ProofTier.VERIFIED_ARTIFACT, ProofTier.NONE):
            return False
        skill = item.skill.lower()
        if anchors.get(skill):
            return True
        return any(
            anchors.get(source) for source in self.related_sources(skill)
        ) or any(self.is_related(skill, anchor) for anchor in anchors)

    @staticmethod
    def _with_shape_tier(item: EvidenceItem) -> EvidenceItem:
        if item.contradicts:
            return replace(item, tier=ProofTier.CLAIM_ONLY, reliability=0.0)
        tier = classify(item.has_link, item.has_detail, item.corroborations)
        if item.boosted:
            tier = tier.upgraded()
        return replace(item, tier=tier)


__all__ = [
    "CLAIMS_COUNT_FRACTION",
    "DEFAULT_ADJACENCY",
    "ProofTier",
    "ProofTierClassifier",
    "TierConfig",
    "classify",
]
