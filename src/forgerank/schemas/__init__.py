"\"\"\"Pydantic schema definitions for requests, profiles and configuration.\"\"\""

from __future__ import annotations

from .profile import ActivityRecord, ProfileSummary, RepositoryRecord
from .request import (
    MAX_CANDIDATES,
    AnalysisRequest,
    Budget,
    CandidateInput,
    CandidateSignals,
    JobConfig,
    JobSummary,
    SalaryExpectation,
    SkillRequirement,
    parse_request,
)

__all__ = [
    "MAX_CANDIDATES",
    "ActivityRecord",
    "AnalysisRequest",
    "Budget",
    "CandidateInput",
    "CandidateSignals",
    "JobConfig",
    "JobSummary",
    "ProfileSummary",
    "RepositoryRecord",
    "SalaryExpectation",
    "SkillRequirement",
    "parse_request",
]
