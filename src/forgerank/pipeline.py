"\"\"\"Batch orchestration: validate, fetch or fall back, score, sort and respond.\"\"\""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable
from uuid import uuid4

import pendulum
import structlog

from .adapters import ProfileProvider, is_valid_identifier, normalize_identifier
from .core import FallbackSynthesizer, ScoringContext, ScreeningCore
from .core.models import CandidateAnalysis, CandidateError, ResolvedCandidate, to_payload
from .errors import (
    IdentifierFormatError,
    InternalScoringFault,
    RequestValidationError,
    UpstreamFetchError,
)
from .logging import request_context
from .schemas import (
    MAX_CANDIDATES,
    ActivityRecord,
    AnalysisRequest,
    CandidateInput,
    ProfileSummary,
    parse_request,
)

DEFAULT_FETCH_TIMEOUT_SECONDS = 15.0
FORMULA = "FORGE_SCORE = CS × XS + LV where CS_verified ≥ τ"
INTERNAL_ERROR_MESSAGE = "Failed to analyze candidates"
REQUEST_TIMEOUT_MESSAGE = "Request timed out before the candidate was analyzed"

Outcome = CandidateAnalysis | CandidateError


@dataclass
class BatchConfig:
    """Batch bounds and deadlines."""

    max_candidates: int = MAX_CANDIDATES
    max_concurrency: int = 4
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    request_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_candidates < 1:
            raise ValueError("max_candidates must be at least 1")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.fetch_timeout_seconds <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")


def resolve_candidate(entry: str | CandidateInput, index: int) -> ResolvedCandidate:
    """Resolve one request entry, string or structured, into the internal candidate type."""
    if isinstance(entry, str):
        raw, structured = entry, None
    else:
        raw, structured = entry.raw_identifier(), entry

    identifier = normalize_identifier(raw)
    error: str | None = None
    label = identifier
    if identifier is None:
        error = "No profile identifier provided"
    elif not is_valid_identifier(identifier):
        error = str(IdentifierFormatError(identifier))
        identifier = None

    name = structured.name if structured is not None else None
    if not label:
        label = name or "unknown"

    if structured is not None and structured.id:
        candidate_id = structured.id
    elif identifier:
        candidate_id = f"cand_{identifier.lower()}"
    elif name:
        candidate_id = f"cand_{_slug(name)}"
    else:
        candidate_id = f"cand_{index}"

    return ResolvedCandidate(
        index=index,
        label=label,
        candidate_id=candidate_id,
        identifier=identifier,
        identifier_error=error,
        structured=structured,
    )


class RequestLoader:
    """Load analysis request documents."""

    def load(self, path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except json.JSONDecodeError as exc:
                raise RequestValidationError(f"Invalid request JSON: {exc}") from exc


class OutputWriter:
    """Persist analysis responses."""

    def write(self, path: Path, payload: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


class AnalysisPipeline:
    """End-to-end batch orchestrator.

    Candidates run concurrently up to ``max_concurrency``. Each profile fetch
    runs under its own deadline, and nothing that happens to one candidate
    reaches its siblings. Output order depends only on gate group, score and
    input position.
    """

    def __init__(
        self,
        *,
        core: ScreeningCore,
        fallback: FallbackSynthesizer,
        provider: ProfileProvider,
        config: BatchConfig | None = None,
        loader: RequestLoader | None = None,
        writer: OutputWriter | None = None,
        clock: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._core = core
        self._fallback = fallback
        self._provider = provider
        self._config = config or BatchConfig()
        self._loader = loader or RequestLoader()
        self._writer = writer or OutputWriter()
        self._clock = clock or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    @property
    def config(self) -> BatchConfig:
        return self._config

    def run(
        self,
        *,
        request_path: Path,
        output_path: Path,
        audit_logger: AuditLogger | None = None,
    ) -> dict:
        try:
            payload = self._loader.load(request_path)
        except RequestValidationError as exc:
            self._logger.warning("analysis.rejected", error=exc.message)
            response: dict = {"success": False, "error": exc.message}
        else:
            response = asyncio.run(self.analyze(payload, audit_logger=audit_logger))
        self._writer.write(output_path, response)
        return response

    async def analyze(self, payload: Any, *, audit_logger: AuditLogger | None = None) -> dict:
        with request_context(request_id=uuid4().hex[:12], mode=self._provider.mode):
            try:
                request = parse_request(payload, max_candidates=self._config.max_candidates)
            except RequestValidationError as exc:
                self._logger.warning("analysis.rejected", error=exc.message, field=exc.field)
                return {"success": False, "error": exc.message}

            try:
                return await self._analyze(request, audit_logger)
            except Exception:  # noqa: BLE001
                self._logger.exception("analysis.failed")
                return {"success": False, "error": INTERNAL_ERROR_MESSAGE}

    async def _analyze(
        self,
        request: AnalysisRequest,
        audit_logger: AuditLogger | None,
    ) -> dict:
        job_config = request.resolved_job_config()
        ctx = ScoringContext(
            skills=tuple(request.skills),
            tau=self._core.gate.resolve_tau(job_config, request.tau),
            job_config=job_config,
            as_of=request.as_of,
        )
        candidates = [resolve_candidate(entry, idx) for idx, entry in enumerate(request.candidates)]
        outcomes = await self._run_batch(candidates, ctx)

        analyses = [item for item in outcomes if isinstance(item, CandidateAnalysis)]
        errors = [item for item in outcomes if isinstance(item, CandidateError)]
        ordered = self._core.gate.sort(analyses)
        counts = self._core.gate.counts(ordered)

        if audit_logger:
            for analysis in ordered:
                audit_logger.append(
                    {
                        "candidate_id": analysis.id,
                        "input_index": analysis.input_index,
                        "gate_status": analysis.gate_status,
                        "capability_score": analysis.capability_score,
                        "context_score": analysis.context_score,
                        "forge_score": analysis.forge_score,
                        "tau": analysis.tau,
                        "data_quality": analysis.data_quality,
                        "verdict": analysis.verdict,
                    }
                )
            for error in errors:
                audit_logger.append(
                    {"identifier": error.identifier, "input_index": error.input_index, "error": error.error}
                )

        response: dict[str, Any] = {
            "success": True,
            "candidates": [to_payload(analysis) for analysis in ordered],
        }
        if errors:
            response["errors"] = [{"identifier": e.identifier, "error": e.error} for e in errors]
        response["meta"] = {
            "mode": self._provider.mode,
            "analyzedAt": self._clock().to_iso8601_string(),
            "skillsEvaluated": len(request.skills),
            "candidatesAnalyzed": sum(1 for a in ordered if a.data_quality != "fallback"),
            "tau": ctx.tau,
            "ranked": counts["ranked"],
            "review": counts["review"],
            "filtered": counts["filtered"],
            "formula": FORMULA,
        }
        self._logger.info(
            "analysis.batch_complete",
            candidates=len(ordered),
            errors=len(errors),
            tau=ctx.tau,
            **counts,
        )
        return response

    async def _run_batch(
        self,
        candidates: list[ResolvedCandidate],
        ctx: ScoringContext,
    ) -> list[Outcome]:
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        tasks = [
            asyncio.create_task(self._run_candidate(candidate, ctx, semaphore))
            for candidate in candidates
        ]
        done, pending = await asyncio.wait(tasks, timeout=self._config.request_timeout_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self._logger.warning("analysis.request_timeout", unresolved=len(pending))

        outcomes: list[Outcome] = []
        for candidate, task in zip(candidates, tasks):
            if task in done and not task.cancelled():
                if task.exception() is None:
                    outcomes.append(task.result())
                    continue
                self._logger.error(
                    "analysis.candidate_crashed",
                    candidate=candidate.label,
                    error=repr(task.exception()),
                )
                outcomes.append(
                    self._fallback.failure_record(candidate, ctx, reason="Internal scoring error")
                )
            else:
                outcomes.append(
                    CandidateError(
                        identifier=candidate.label,
                        error=REQUEST_TIMEOUT_MESSAGE,
                        input_index=candidate.index,
                    )
                )
        return outcomes

    async def _run_candidate(
        self,
        candidate: ResolvedCandidate,
        ctx: ScoringContext,
        semaphore: asyncio.Semaphore,
    ) -> Outcome:
        log = self._logger.bind(candidate=candidate.label, index=candidate.index)

        if candidate.identifier is None:
            if candidate.has_secondary_signals:
                log.info("analysis.fallback", reason=candidate.identifier_error)
                return self._synthesize(candidate, ctx, failure=None)
            log.info("analysis.candidate_error", error=candidate.identifier_error)
            return CandidateError(
                identifier=candidate.label,
                error=candidate.identifier_error or "No profile identifier provided",
                input_index=candidate.index,
            )

        async with semaphore:
            try:
                profile, activity = await self._fetch(candidate.identifier)
            except UpstreamFetchError as exc:
                log.warning("provider.fetch_failed", kind=exc.kind.value, error=exc.message)
                if candidate.has_secondary_signals:
                    return self._synthesize(candidate, ctx, failure=exc.message)
                return self._fallback.failure_record(candidate, ctx, reason=exc.message)

        try:
            analysis = self._core.evaluate(candidate, ctx, profile=profile, activity=activity)
        except InternalScoringFault as exc:
            log.error("analysis.scoring_fault", error=str(exc))
            return self._fallback.failure_record(candidate, ctx, reason=str(exc))
        except Exception:  # noqa: BLE001
            log.exception("analysis.scoring_fault")
            return self._fallback.failure_record(candidate, ctx, reason="Internal scoring error")

        log.info(
            "analysis.candidate_scored",
            gate_status=analysis.gate_status,
            capability_score=analysis.capability_score,
            forge_score=analysis.forge_score,
            data_quality=analysis.data_quality,
        )
        return analysis

    async def _fetch(
        self,
        identifier: str,
    ) -> tuple[ProfileSummary, list[ActivityRecord] | None]:
        async def fetch_both() -> tuple[ProfileSummary, list[ActivityRecord] | None]:
            profile = await self._provider.fetch_profile(identifier)
            try:
                activity: list[ActivityRecord] | None = await self._provider.fetch_activity(identifier)
            except UpstreamFetchError as exc:
                self._logger.warning(
                    "provider.activity_failed", candidate=identifier, kind=exc.kind.value
                )
                activity = None
            return profile, activity

        try:
            return await asyncio.wait_for(fetch_both(), timeout=self._config.fetch_timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise UpstreamFetchError.timeout(identifier, self._config.fetch_timeout_seconds) from exc

    def _synthesize(
        self,
        candidate: ResolvedCandidate,
        ctx: ScoringContext,
        *,
        failure: str | None,
    ) -> CandidateAnalysis:
        try:
            return self._fallback.synthesize(candidate, ctx, failure=failure)
        except InternalScoringFault as exc:
            self._logger.error("analysis.scoring_fault", candidate=candidate.label, error=str(exc))
            return self._fallback.failure_record(candidate, ctx, reason=str(exc))


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", value.lower()).strip("_") or "candidate"


__all__ = [
    "DEFAULT_FETCH_TIMEOUT_SECONDS",
    "FORMULA",
    "AnalysisPipeline",
    "AuditLogger",
    "BatchConfig",
    "OutputWriter",
    "RequestLoader",
    "resolve_candidate",
]
