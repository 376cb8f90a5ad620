"\"\"\"Pydantic configuration schema for CLI YAML input.\"\"\""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class CoreConfig(BaseModel):
    weight_multipliers: dict[str, float] | None = None


class EvaluatorConfig(BaseModel):
    normalizer: dict[str, Any] | None = None
    tiers: dict[str, Any] | None = None
    capability: dict[str, Any] | None = None
    context: dict[str, Any] | None = None
    compensation: dict[str, Any] | None = None
    velocity: dict[str, Any] | None = None
    gate: dict[str, Any] | None = None
    fallback: dict[str, Any] | None = None


class BatchSettings(BaseModel):
    max_candidates: int | None = Field(default=None, ge=1)
    max_concurrency: int | None = Field(default=None, ge=1)
    fetch_timeout_seconds: float | None = Field(default=None, gt=0)
    request_timeout_seconds: float | None = Field(default=None, gt=0)


class ProviderSettings(BaseModel):
    kind: Literal["github", "static"] = "github"
    token: str | None = None
    base_url: str | None = None
    profiles_path: str | None = None
    max_in_flight: int | None = Field(default=None, ge=1)
    min_interval_seconds: float | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    core: CoreConfig = Field(default_factory=CoreConfig)
    evaluators: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
    batch: BatchSettings = Field(default_factory=BatchSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        if self.core.weight_multipliers:
            settings["core"] = self.core.model_dump(exclude_none=True)
        evaluator_settings = self.evaluators.model_dump(exclude_none=True)
        if evaluator_settings:
            settings["evaluators"] = evaluator_settings
        batch_settings = self.batch.model_dump(exclude_none=True)
        if batch_settings:
            settings["batch"] = batch_settings
        settings["provider"] = self.provider.model_dump(exclude_none=True)
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValueError("Config must be a mapping")
    return AppConfig.model_validate(raw)


__all__ = [
    "AppConfig",
    "BatchSettings",
    "CoreConfig",
    "EvaluatorConfig",
    "ProviderSettings",
    "load_config",
]
