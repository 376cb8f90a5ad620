"\"\"\"Evidence normalization: raw candidate signals to per-skill evidence items.\"\"\""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from rapidfuzz import fuzz

from ...schemas import CandidateSignals, ProfileSummary, RepositoryRecord
from ..models import EvidenceItem

_URL_PATTERN = re.compile(r"https?://\S+|www\.\S+", re.IGNORECASE)
_DETAIL_PATTERN = re.compile(
    r"\d+(?:[.,]\d+)?\s*(?:%|\+|x\b|k\b|ms\b|percent\b|years?\b|yrs?\b|months?\b|"
    r"users\b|customers\b|engineers\b|people\b|requests\b|services\b|teams?\b|stars\b)",
    re.IGNORECASE,
)
# A negator governs a mention only when at most three plain words separate them.
_NEGATION_PATTERN = re.compile(
    r"(?<![\w-])(?:no|never|not|without|lack(?:s|ing)?(?:\s+of)?|zero)(?![\w-])"
    r"(?:\s+(?!(?:but|and|or|yet)\b)[^\s,;:!?]+){0,3}\s+$",
    re.IGNORECASE,
)
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?;])\s+|\n+")
_TOKEN_SPLIT = re.compile(r"[-_./\s]+")

DEFAULT_ALIASES: dict[str, tuple[str, ...]] = {
    "javascript": ("js", "ecmascript"),
    "typescript": ("ts",),
    "kubernetes": ("k8s",),
    "postgresql": ("postgres",),
    "next.js": ("nextjs",),
    "node.js": ("nodejs", "node"),
    "ci/cd": ("continuous integration", "github actions", "ci pipeline"),
    "golang": ("go",),
    "go": ("golang",),
    "c#": ("csharp",),
    "machine learning": ("ml",),
}


@dataclass
class NormalizerConfig:
    """Matching thresholds and per-channel reliability."""

    min_similarity: float = 88.0
    max_repositories_per_skill: int = 5
    max_text_items_per_channel: int = 3
    channel_reliability: dict[str, float] = field(
        default_factory=lambda: {
            "repository": 0.9,
            "repository_fork": 0.6,
            "portfolio": 0.6,
            "writing": 0.5,
            "resume": 0.5,
            "linkedin": 0.45,
            "extracurricular": 0.4,
        }
    )
    aliases: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_ALIASES))


class EvidenceNormalizer:
    """Build immutable evidence items, one named predicate per signal channel.

    Items come out untiered; the proof-tier classifier assigns tiers from the
    shape flags recorded here. Nothing in this class touches the network.
    """

    method = "evidence"

    def __init__(self, *, config: NormalizerConfig | None = None) -> None:
        self._config = config or NormalizerConfig()

    def collect(
        self,
        *,
        skill_terms: Sequence[str],
        profile: ProfileSummary | None = None,
        signals: CandidateSignals | None = None,
    ) -> list[EvidenceItem]:
        items: list[EvidenceItem] = []
        for skill in skill_terms:
            if profile is not None:
                items.extend(self._repository_items(skill, profile.repositories))
            if signals is not None:
                items.extend(self._portfolio_items(skill, signals))
                items.extend(self._writing_items(skill, signals))
                for channel, text in signals.texts().items():
                    items.extend(self._text_items(skill, channel, text))
        return items

    def mentions_skill(self, skill: str, text: str | None) -> bool:
        if not text:
            return False
        return any(pattern.search(text) for pattern in self._patterns(skill))

    # -- repositories ---------------------------------------------------------

    def _repository_items(
        self,
        skill: str,
        repositories: Iterable[RepositoryRecord],
    ) -> list[EvidenceItem]:
        matched = [repo for repo in repositories if self._repository_matches(skill, repo)]
        matched.sort(key=lambda repo: (-repo.stargazers_count, repo.fork, repo.name.lower()))

        items: list[EvidenceItem] = []
        for idx, repo in enumerate(matched[: self._config.max_repositories_per_skill]):
            named = self._named_in_metadata(skill, repo)
            corroborations = int(not repo.fork) + int(repo.stargazers_count > 0) + int(named)
            reliability_key = "repository_fork" if repo.fork else "repository"
            stars = f", {repo.stargazers_count} stars" if repo.stargazers_count else ""
            items.append(
                EvidenceItem(
                    id=f"ev_repository_{_slug(skill)}_{idx}",
                    skill=skill,
                    source="repository",
                    description=f"{repo.name}: {repo.language or 'repository'}{stars}"
                    + (" (fork)" if repo.fork else ""),
                    reliability=self._config.channel_reliability[reliability_key],
                    url=repo.html_url or None,
                    snippet=repo.description,
                    impact=_repository_impact(repo),
                    has_link=True,
                    has_detail=True,
                    corroborations=corroborations,
                )
            )
        return items

    def _repository_matches(self, skill: str, repo: RepositoryRecord) -> bool:
        tokens = [repo.language or "", *repo.topics, *_TOKEN_SPLIT.split(repo.name)]
        if any(self._token_matches(skill, token) for token in tokens if token):
            return True
        return self.mentions_skill(skill, repo.description)

    def _named_in_metadata(self, skill: str, repo: RepositoryRecord) -> bool:
        if any(self._token_matches(skill, topic) for topic in repo.topics):
            return True
        return self.mentions_skill(skill, repo.description)

    def _token_matches(self, skill: str, token: str) -> bool:
        token = token.strip().lower()
        if not token:
            return False
        for term in self._terms(skill):
            if token == term:
                return True
            if len(term) > 3 and fuzz.ratio(term, token) >= self._config.min_similarity:
                return True
        return False

    # -- links ----------------------------------------------------------------

    def _portfolio_items(self, skill: str, signals: CandidateSignals) -> list[EvidenceItem]:
        url = (signals.portfolio_url or "").strip()
        if not url or not self._url_names_skill(skill, url):
            return []
        return [
            EvidenceItem(
                id=f"ev_portfolio_{_slug(skill)}_0",
                skill=skill,
                source="portfolio",
                description="Portfolio case study",
                reliability=self._config.channel_reliability["portfolio"],
                url=url,
                impact="medium",
                has_link=True,
                has_detail=True,
            )
        ]

    def _writing_items(self, skill: str, signals: CandidateSignals) -> list[EvidenceItem]:
        items: list[EvidenceItem] = []
        for link in signals.writing_links:
            link = (link or "").strip()
            if not link or not self._url_names_skill(skill, link):
                continue
            items.append(
                EvidenceItem(
                    id=f"ev_writing_{_slug(skill)}_{len(items)}",
                    skill=skill,
                    source="writing",
                    description="Published writing sample",
                    reliability=self._config.channel_reliability["writing"],
                    url=link,
                    impact="medium",
                    has_link=True,
                    has_detail=True,
                )
            )
        return items

    def _url_names_skill(self, skill: str, url: str) -> bool:
        path = re.sub(r"^https?://", "", url.lower())
        return any(self._token_matches(skill, token) for token in _TOKEN_SPLIT.split(path))

    # -- free text ------------------------------------------------------------

    def _text_items(self, skill: str, channel: str, text: str) -> list[EvidenceItem]:
        items: list[EvidenceItem] = []
        for sentence in _SENTENCE_SPLIT.split(text):
            sentence = sentence.strip()
            if not sentence:
                continue
            mention = self._first_mention(skill, sentence)
            if mention is None:
                continue
            contradicts = bool(_NEGATION_PATTERN.search(sentence[:mention]))
            link = _URL_PATTERN.search(sentence)
            items.append(
                EvidenceItem(
                    id=f"ev_{channel}_{_slug(skill)}_{len(items)}",
                    skill=skill,
                    source=channel,
                    description=f"{channel.capitalize()} mention",
                    reliability=self._config.channel_reliability[channel],
                    url=link.group(0) if link else None,
                    snippet=sentence[:240],
                    impact="low",
                    has_link=link is not None,
                    has_detail=bool(_DETAIL_PATTERN.search(sentence)),
                    contradicts=contradicts,
                )
            )
            if len(items) >= self._config.max_text_items_per_channel:
                break
        return items

    def _first_mention(self, skill: str, sentence: str) -> int | None:
        positions = [
            match.start()
            for pattern in self._patterns(skill)
            for match in [pattern.search(sentence)]
            if match is not None
        ]
        return min(positions) if positions else None

    def _patterns(self, skill: str) -> list[re.Pattern[str]]:
        return [
            re.compile(rf"(?<![\w.#+]){re.escape(term)}(?![\w#+])", re.IGNORECASE)
            for term in self._terms(skill)
        ]

    def _terms(self, skill: str) -> list[str]:
        base = skill.strip().lower()
        return [base, *self._config.aliases.get(base, ())]


def _repository_impact(repo: RepositoryRecord) -> str:
    if repo.stargazers_count >= 10:
        return "high"
    if repo.stargazers_count > 0 or not repo.fork:
        return "medium"
    return "low"


def _slug(value: str) -> str:
    value = value.lower().replace("+", "p").replace("#", "sharp")
    return re.sub(r"[^a-z0-9]+", "_", value).strip("_") or "skill"
