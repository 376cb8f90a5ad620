from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RepositoryRecord(BaseModel):
    """Public repository as returned by the upstream profile provider."""

    name: str
    html_url: str = ""
    description: str | None = None
    language: str | None = None
    topics: list[str] = Field(default_factory=list)
    fork: bool = False
    stargazers_count: int = 0
    forks_count: int = 0
    created_at: str | None = None
    pushed_at: str | None = None

    model_config = ConfigDict(extra="ignore")


class ProfileSummary(BaseModel):
    """Provider-neutral profile snapshot with its repositories."""

    login: str
    name: str | None = None
    avatar_url: str = ""
    html_url: str = ""
    bio: str | None = None
    blog: str | None = None
    company: str | None = None
    location: str | None = None
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    created_at: str | None = None
    repositories: list[RepositoryRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ActivityRecord(BaseModel):
    """Single dated activity entry (push, fork, create, ...)."""

    occurred_at: str
    kind: str = "other"
    repository: str | None = None
    count: int = 1

    model_config = ConfigDict(extra="ignore")
