"\"\"\"Context score (XS) from behavioral and collaboration signals.\"\"\""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from ...schemas import CandidateSignals, ProfileSummary
from ..models import CompFit, ContextDimension, EvaluationResult

DIMENSIONS = ("teamwork", "communication", "adaptability", "ownership")

DEFAULT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "teamwork": (
        "team", "collaborat", "pair", "mentor", "cross-functional", "code review", "partnered",
    ),
    "communication": (
        "wrote", "writing", "blog", "talk", "presented", "documentation", "speaker",
        "conference", "article", "published",
    ),
    "adaptability": (
        "learned", "learning", "migrated", "transition", "adapted", "pivot", "rewrote",
        "switched", "new stack",
    ),
    "ownership": (
        "led", "lead", "founded", "owned", "launched", "built", "maintain", "architected",
        "shipped", "organized", "initiated",
    ),
}


@dataclass
class ContextConfig:
    """Neutral default and point scales for each signal channel."""

    neutral_score: float = 30.0
    present_base: float = 35.0
    keyword_points: float = 8.0
    keyword_cap: float = 40.0
    keywords: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_KEYWORDS))


@dataclass(frozen=True, slots=True)
class ContextResult:
    dimensions: dict[str, ContextDimension]
    raw_score: float
    xs: float
    xs_multiplier: float


class ContextScorer:
    """Derive teamwork, communication, adaptability and ownership on a 0-100 scale.

    A dimension whose signal channels are all absent gets the neutral default
    instead of zero, so a candidate without e.g. a public profile is not
    penalized twice.
    """

    method = "context"

    def __init__(self, *, config: ContextConfig | None = None) -> None:
        self._config = config or ContextConfig()
        self._patterns = {
            name: [re.compile(rf"\b{re.escape(word)}", re.IGNORECASE) for word in words]
            for name, words in self._config.keywords.items()
        }

    def score(
        self,
        *,
        profile: ProfileSummary | None,
        signals: CandidateSignals | None,
        comp_fit: CompFit,
    ) -> ContextResult:
        texts = list(signals.texts().values()) if signals else []
        if profile is not None and profile.bio:
            texts.append(profile.bio)

        builders = {
            "teamwork": self._teamwork,
            "communication": self._communication,
            "adaptability": self._adaptability,
            "ownership": self._ownership,
        }
        dimensions = {
            name: builders[name](profile, signals, texts) for name in DIMENSIONS
        }
        raw = sum(dim.score for dim in dimensions.values()) / len(dimensions) / 100.0
        xs = max(0.0, min(1.0, raw * comp_fit.xs_multiplier))
        return ContextResult(
            dimensions=dimensions,
            raw_score=round(raw, 4),
            xs=round(xs, 4),
            xs_multiplier=comp_fit.xs_multiplier,
        )

    def to_evaluation(self, result: ContextResult) -> EvaluationResult:
        scores = {name: dim.score for name, dim in result.dimensions.items()}
        scores["xs"] = result.xs
        return EvaluationResult(
            method=self.method,
            scores=scores,
            metadata={
                "raw_score": result.raw_score,
                "xs_multiplier": result.xs_multiplier,
                "sources": {name: dim.source for name, dim in result.dimensions.items()},
            },
        )

    # -- dimensions -----------------------------------------------------------

    def _teamwork(self, profile, signals, texts) -> ContextDimension:
        parts: list[tuple[str, float]] = []
        if profile is not None:
            forked_by_others = sum(r.forks_count for r in profile.repositories if not r.fork)
            parts.append(
                ("collaboration history", min(30.0, profile.followers * 1.5) + min(20.0, forked_by_others * 4.0))
            )
        if texts:
            parts.append(("behavioral text", self._keyword_points("teamwork", texts)))
        return self._dimension("Teamwork", parts)

    def _communication(self, profile, signals, texts) -> ContextDimension:
        parts: list[tuple[str, float]] = []
        links = [link for link in (signals.writing_links if signals else []) if link and link.strip()]
        if links:
            parts.append(("writing samples", min(30.0, 15.0 * len(links))))
        if profile is not None and profile.repositories:
            described = sum(1 for r in profile.repositories if r.description)
            parts.append(("repository descriptions", 20.0 * described / len(profile.repositories)))
        if texts:
            parts.append(("behavioral text", self._keyword_points("communication", texts)))
        return self._dimension("Communication", parts)

    def _adaptability(self, profile, signals, texts) -> ContextDimension:
        parts: list[tuple[str, float]] = []
        if profile is not None and profile.repositories:
            languages = {r.language.lower() for r in profile.repositories if r.language}
            parts.append(("portfolio breadth", min(32.0, 8.0 * len(languages))))
        if signals is not None and signals.portfolio_url:
            parts.append(("portfolio", 15.0))
        if texts:
            parts.append(("behavioral text", self._keyword_points("adaptability", texts)))
        return self._dimension("Adaptability", parts)

    def _ownership(self, profile, signals, texts) -> ContextDimension:
        parts: list[tuple[str, float]] = []
        if profile is not None and profile.repositories:
            owned = [r for r in profile.repositories if not r.fork]
            starred = sum(1 for r in owned if r.stargazers_count > 0)
            parts.append(("owned repositories", min(20.0, 2.0 * len(owned)) + min(25.0, 5.0 * starred)))
        if signals is not None and signals.extracurricular_text:
            parts.append(("extracurricular", 15.0))
        if texts:
            parts.append(("behavioral text", self._keyword_points("ownership", texts)))
        return self._dimension("Ownership", parts)

    def _dimension(self, name: str, parts: list[tuple[str, float]]) -> ContextDimension:
        if not parts:
            return ContextDimension(
                name=name,
                score=self._config.neutral_score,
                raw=0.0,
                source="Limited data",
                confidence=0.2,
            )
        raw = sum(points for _, points in parts)
        score = min(100.0, self._config.present_base + raw)
        return ContextDimension(
            name=name,
            score=round(score, 2),
            raw=round(raw, 2),
            source=", ".join(label for label, _ in parts),
            confidence=round(min(1.0, 0.3 + 0.25 * len(parts)), 2),
        )

    def _keyword_points(self, dimension: str, texts: Iterable[str]) -> float:
        corpus = "\n".join(texts)
        hits = sum(1 for pattern in self._patterns.get(dimension, []) if pattern.search(corpus))
        return min(self._config.keyword_cap, hits * self._config.keyword_points)
