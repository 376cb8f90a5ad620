from __future__ import annotations

import asyncio
from typing import Any

import pytest

from forgerank.container import create_container
from forgerank.core import ScreeningCore
from forgerank.core.gate import GateEngine
from forgerank.pipeline import REQUEST_TIMEOUT_MESSAGE, AnalysisPipeline, BatchConfig, resolve_candidate
from forgerank.schemas import CandidateInput, ProfileSummary

SKILLS = [{"name": "Python", "weight": 2}, {"name": "TypeScript", "weight": 1}]

PROFILES: dict[str, Any] = {
    "alice": {
        "profile": {
            "name": "Alice",
            "followers": 12,
            "repositories": [
                {
                    "name": "fastapi-shop",
                    "html_url": "https://github.com/alice/fastapi-shop",
                    "language": "Python",
                    "topics": ["python", "fastapi"],
                    "stargazers_count": 14,
                },
                {
                    "name": "ts-widgets",
                    "html_url": "https://github.com/alice/ts-widgets",
                    "language": "TypeScript",
                    "stargazers_count": 2,
                },
            ],
        },
        "activity": [
            {"occurred_at": f"2024-{month:02d}-05T09:00:00Z", "kind": "push", "count": month}
            for month in range(1, 7)
        ],
    },
    "bob": {
        "profile": {"name": "Bob", "repositories": [{"name": "dotfiles", "language": "Shell"}]},
        "activity": [],
    },
    "limited": {"error": {"kind": "rate_limited", "message": "API rate limit exceeded"}},
    "quiet": {
        "profile": {"repositories": [{"name": "py-tools", "language": "Python", "stargazers_count": 1}]},
        "activity_error": {"kind": "timeout"},
    },
    "slow": {"delay": 0.5, "profile": {}},
}


def build_pipeline(settings: dict | None = None, profiles: dict | None = None) -> AnalysisPipeline:
    container = create_container(settings=settings, profiles=profiles or PROFILES)
    return container.pipeline()


def analyze(pipeline: AnalysisPipeline, payload: dict) -> dict:
    return asyncio.run(pipeline.analyze(payload))


def scenario_payload(**extra: Any) -> dict:
    payload = {
        "skills": SKILLS,
        "candidates": [
            "alice",
            "bob",
            {"name": "Carol", "signals": {"resumeText": "Wrote Python tooling for 5 teams."}},
            "not a valid name!",
            "ghost",
        ],
        "asOf": "2024-06-15",
    }
    payload.update(extra)
    return payload


def assert_ordering(candidates: list[dict]) -> None:
    groups = {"ranked": 0, "review": 1, "filtered": 2}
    keys = [
        (
            groups[c["gateStatus"]],
            -(c["capabilityScore"] if c["gateStatus"] == "filtered" else c["forgeScore"]),
        )
        for c in candidates
    ]
    assert keys == sorted(keys)


def test_mixed_batch_is_ranked_and_isolated():
    response = analyze(build_pipeline(), scenario_payload())

    assert response["success"] is True
    ids = [c["id"] for c in response["candidates"]]
    assert ids == ["cand_alice", "cand_carol", "cand_bob", "cand_ghost_error"]

    alice, carol, bob, ghost = response["candidates"]
    assert alice["gateStatus"] == "ranked"
    assert alice["capabilityScore"] == pytest.approx(0.9)
    assert alice["dataQuality"] == "full"
    assert alice["learningVelocityBonus"] == pytest.approx(7.0)
    assert carol["dataQuality"] == "partial"
    assert carol["capabilityScore"] == pytest.approx(0.3333)
    assert carol["gateStatus"] == "filtered"
    assert bob["capabilityScore"] == 0.0
    assert ghost["dataQuality"] == "fallback"
    assert ghost["verdict"] == "Reject"
    assert ghost["explanation"]["summary"] == "Error: Profile not found: ghost"

    assert response["errors"] == [
        {"identifier": "not a valid name!", "error": 'Invalid profile identifier format: "not a valid name!"'}
    ]
    meta = response["meta"]
    assert meta["mode"] == "offline"
    assert meta["candidatesAnalyzed"] == 3
    assert meta["skillsEvaluated"] == 2
    assert meta["tau"] == pytest.approx(0.4)
    assert (meta["ranked"], meta["review"], meta["filtered"]) == (1, 0, 3)
    assert meta["formula"].startswith("FORGE_SCORE")
    assert_ordering(response["candidates"])


def test_gate_status_follows_verified_capability():
    response = analyze(build_pipeline(), scenario_payload(tau=0.3))

    for candidate in response["candidates"]:
        passed = candidate["capabilityScore"] >= candidate["tau"]
        assert (candidate["gateStatus"] != "filtered") is passed
    assert_ordering(response["candidates"])


def test_job_threshold_takes_precedence_over_request_tau():
    pipeline = build_pipeline()

    strict = analyze(pipeline, scenario_payload(tau=0.1, jobConfig={"gateThreshold": 0.99}))
    loose = analyze(pipeline, scenario_payload(tau=0.1))

    assert strict["meta"]["tau"] == pytest.approx(0.99)
    assert strict["meta"]["ranked"] == 0
    assert loose["meta"]["tau"] == pytest.approx(0.1)
    carol = next(c for c in loose["candidates"] if c["id"] == "cand_carol")
    assert carol["gateStatus"] == "ranked"


def test_configured_default_tau_applies_without_request_values():
    pipeline = build_pipeline(settings={"evaluators": {"gate": {"default_tau": 0.25}}})

    response = analyze(pipeline, scenario_payload())

    assert response["meta"]["tau"] == pytest.approx(0.25)


def test_eleven_candidates_are_rejected():
    payload = {"skills": SKILLS, "candidates": [f"user{i}" for i in range(11)]}

    response = analyze(build_pipeline(), payload)

    assert response == {"success": False, "error": "Maximum 10 candidates per request"}


def test_secondary_signals_only_candidate_can_rank():
    payload = {
        "skills": [{"name": "TypeScript", "weight": 1}],
        "candidates": [{"name": "Dana", "signals": {"resumeText": "Led a TypeScript migration for 3 teams."}}],
    }

    response = analyze(build_pipeline(), payload)

    dana = response["candidates"][0]
    assert dana["id"] == "cand_dana"
    assert dana["capabilityScore"] == pytest.approx(0.5)
    assert dana["contextScore"] == pytest.approx(0.58)
    assert dana["forgeScore"] == pytest.approx(0.29)
    assert dana["gateStatus"] == "ranked"
    assert dana["dataQuality"] == "partial"
    assert "errors" not in response


def test_rate_limited_candidate_with_portfolio_falls_back():
    payload = {
        "skills": SKILLS,
        "candidates": [
            {"identifier": "limited", "name": "Lee", "signals": {"portfolioUrl": "https://lee.dev"}},
        ],
    }

    response = analyze(build_pipeline(), payload)

    lee = response["candidates"][0]
    assert lee["dataQuality"] == "partial"
    assert lee["explanation"]["summary"].startswith("Profile fetch failed: API rate limit exceeded")
    assert lee["portfolio"] == "https://lee.dev"
    assert response["meta"]["candidatesAnalyzed"] == 1


def test_missing_identifier_without_signals_is_an_error_entry():
    payload = {"skills": SKILLS, "candidates": [{"name": "Nobody"}, "alice"]}

    response = analyze(build_pipeline(), payload)

    assert [c["id"] for c in response["candidates"]] == ["cand_alice"]
    assert response["errors"] == [{"identifier": "Nobody", "error": "No profile identifier provided"}]


def test_failed_activity_fetch_is_partial():
    payload = {"skills": SKILLS, "candidates": ["quiet"], "asOf": "2024-06-15"}

    response = analyze(build_pipeline(), payload)

    quiet = response["candidates"][0]
    assert quiet["dataQuality"] == "partial"
    assert quiet["learningVelocityBonus"] == 0.0
    assert response["meta"]["candidatesAnalyzed"] == 1


def test_identical_requests_produce_identical_candidates():
    pipeline = build_pipeline()

    first = analyze(pipeline, scenario_payload())
    second = analyze(pipeline, scenario_payload())

    assert first["candidates"] == second["candidates"]
    assert first["errors"] == second["errors"]


def test_fetch_deadline_turns_into_failure_record():
    pipeline = build_pipeline(settings={"batch": {"fetch_timeout_seconds": 0.05}})
    payload = {"skills": SKILLS, "candidates": ["slow", "bob"]}

    response = analyze(pipeline, payload)

    slow = next(c for c in response["candidates"] if c["id"] == "cand_slow_error")
    assert slow["explanation"]["summary"] == "Error: Profile fetch timed out after 0.05s"
    assert any(c["id"] == "cand_bob" for c in response["candidates"])


def test_request_deadline_reports_unfinished_candidates():
    pipeline = build_pipeline(
        settings={"batch": {"fetch_timeout_seconds": 5, "request_timeout_seconds": 0.05}}
    )
    payload = {"skills": SKILLS, "candidates": ["slow", "bob"]}

    response = analyze(pipeline, payload)

    assert [c["id"] for c in response["candidates"]] == ["cand_bob"]
    assert response["errors"] == [{"identifier": "slow", "error": REQUEST_TIMEOUT_MESSAGE}]


def test_unexpected_failure_returns_generic_error(monkeypatch):
    def boom(analyses):
        raise RuntimeError("sort exploded")

    monkeypatch.setattr(GateEngine, "sort", staticmethod(boom))

    response = analyze(build_pipeline(), scenario_payload())

    assert response == {"success": False, "error": "Failed to analyze candidates"}


def test_crashing_candidate_does_not_affect_siblings(monkeypatch):
    original = ScreeningCore.evaluate

    def flaky(self, candidate, ctx, *, profile, activity):
        if candidate.identifier == "bob":
            raise KeyError("unexpected")
        return original(self, candidate, ctx, profile=profile, activity=activity)

    monkeypatch.setattr(ScreeningCore, "evaluate", flaky)

    response = analyze(build_pipeline(), {"skills": SKILLS, "candidates": ["alice", "bob"], "asOf": "2024-06-15"})

    ids = [c["id"] for c in response["candidates"]]
    assert ids == ["cand_alice", "cand_bob_error"]
    assert response["candidates"][1]["explanation"]["summary"] == "Error: Internal scoring error"


def test_concurrency_is_bounded():
    class CountingProvider:
        mode = "offline"

        def __init__(self) -> None:
            self.active = 0
            self.peak = 0

        async def fetch_profile(self, identifier: str):
            self.active += 1
            self.peak = max(self.peak, self.active)
            await asyncio.sleep(0.01)
            self.active -= 1
            return ProfileSummary(login=identifier)

        async def fetch_activity(self, identifier: str):
            return []

    container = create_container(profiles={})
    provider = CountingProvider()
    pipeline = AnalysisPipeline(
        core=container.screening_core(),
        fallback=container.fallback_synthesizer(),
        provider=provider,
        config=BatchConfig(max_concurrency=3),
    )

    response = analyze(pipeline, {"skills": SKILLS, "candidates": [f"user{i}" for i in range(10)]})

    assert len(response["candidates"]) == 10
    assert provider.peak == 3
    assert [c["inputIndex"] for c in response["candidates"]] == list(range(10))


@pytest.mark.parametrize(
    "entry,expected_id,identifier",
    [
        ("https://github.com/Octo-Cat", "cand_octo-cat", "Octo-Cat"),
        ({"id": "custom-7", "github": "octo"}, "custom-7", "octo"),
        ({"name": "Zoë Smith", "signals": {"resumeText": "x"}}, "cand_zo_smith", None),
        ({"signals": {"resumeText": "x"}}, "cand_4", None),
    ],
)
def test_resolve_candidate_ids(entry, expected_id, identifier):
    if isinstance(entry, dict):
        entry = CandidateInput.model_validate(entry)

    resolved = resolve_candidate(entry, 4)

    assert resolved.candidate_id == expected_id
    assert resolved.identifier == identifier
