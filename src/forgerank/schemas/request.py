from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..errors import RequestValidationError

MAX_CANDIDATES = 10


class _BoundaryModel(BaseModel):
    """Base for request models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class SkillRequirement(_BoundaryModel):
    """Weighted skill the role asks for."""

    name: str = Field(min_length=1)
    weight: float = Field(gt=0)
    is_required: bool = True
    importance: str | None = None
    category: str | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("skill name must not be blank")
        return stripped


class SalaryExpectation(_BoundaryModel):
    """Declared compensation expectation."""

    min: float | None = None
    max: float | None = None
    target: float | None = None
    currency: str | None = None


class CandidateSignals(_BoundaryModel):
    """Secondary signals a candidate may supply next to (or instead of) a profile identifier."""

    portfolio_url: str | None = None
    writing_links: list[str] = Field(default_factory=list)
    resume_text: str | None = None
    linkedin_text: str | None = None
    extracurricular_text: str | None = None
    identifier: str | None = None
    github_username: str | None = None

    def channels(self) -> dict[str, bool]:
        return {
            "portfolio": bool(self.portfolio_url and self.portfolio_url.strip()),
            "writing": any(link and link.strip() for link in self.writing_links),
            "resume": bool(self.resume_text and self.resume_text.strip()),
            "linkedin": bool(self.linkedin_text and self.linkedin_text.strip()),
            "extracurricular": bool(
                self.extracurricular_text and self.extracurricular_text.strip()
            ),
        }

    def channel_count(self) -> int:
        return sum(1 for present in self.channels().values() if present)

    def texts(self) -> dict[str, str]:
        """Free-text channels that are present, keyed by channel name."""
        raw = {
            "resume": self.resume_text,
            "linkedin": self.linkedin_text,
            "extracurricular": self.extracurricular_text,
        }
        return {channel: text for channel, text in raw.items() if text and text.strip()}


class CandidateInput(_BoundaryModel):
    """Structured candidate entry."""

    id: str | None = None
    name: str | None = None
    role_type: str | None = None
    identifier: str | None = None
    github: str | None = None
    salary_expectation: SalaryExpectation | None = None
    signals: CandidateSignals = Field(default_factory=CandidateSignals)

    def raw_identifier(self) -> str | None:
        for value in (
            self.identifier,
            self.github,
            self.signals.identifier,
            self.signals.github_username,
        ):
            if value and value.strip():
                return value
        return None


class Budget(_BoundaryModel):
    min: float | None = None
    max: float | None = None


class JobConfig(_BoundaryModel):
    """Role context: title, seniority, budget band and the gate threshold."""

    role_title: str | None = None
    location: str | None = None
    seniority: str | None = None
    industry: str | None = None
    company_size: str | None = None
    budget: Budget | None = None
    gate_threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class JobSummary(_BoundaryModel):
    title: str | None = None
    description: str | None = None


class AnalysisRequest(_BoundaryModel):
    """Validated analysis request."""

    skills: list[SkillRequirement]
    candidates: list[str | CandidateInput]
    tau: float | None = Field(default=None, ge=0.0, le=1.0)
    job_config: JobConfig | None = None
    job: JobSummary | None = None
    as_of: str | None = None

    @model_validator(mode="after")
    def _unique_skill_names(self) -> AnalysisRequest:
        seen: set[str] = set()
        for skill in self.skills:
            key = skill.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate skill name: {skill.name}")
            seen.add(key)
        return self

    def resolved_job_config(self) -> JobConfig:
        if self.job_config is not None:
            return self.job_config
        title = self.job.title if self.job and self.job.title else "Software Engineer"
        return JobConfig(role_title=title, location="Remote", seniority="Mid")


def parse_request(payload: Any, *, max_candidates: int = MAX_CANDIDATES) -> AnalysisRequest:
    """Validate a raw request body, raising RequestValidationError with a precise message."""

    if not isinstance(payload, dict):
        raise RequestValidationError("Request body must be a JSON object")

    skills = payload.get("skills")
    if not isinstance(skills, list) or not skills:
        raise RequestValidationError("Skills array is required", field="skills")

    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise RequestValidationError("Candidates array is required", field="candidates")
    if len(candidates) > max_candidates:
        raise RequestValidationError(
            f"Maximum {max_candidates} candidates per request", field="candidates"
        )
    for idx, entry in enumerate(candidates):
        if not isinstance(entry, (str, dict)):
            raise RequestValidationError(
                f"candidates[{idx}]: invalid candidate format", field="candidates"
            )

    try:
        return AnalysisRequest.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = str(first.get("msg", "invalid value"))
        raise RequestValidationError(
            f"{location}: {message}" if location else message,
            field=location or None,
        ) from exc
