"\"\"\"Dependency injection container for the ranking engine.\"\"\""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from dependency_injector import containers, providers

from .adapters import GitHubProfileProvider, RateLimitedProvider, StaticProfileProvider
from .calibration import MultiplierWeightAdjuster
from .core import (
    CapabilityScorer,
    CompensationEvaluator,
    ContextScorer,
    EvidenceNormalizer,
    FallbackSynthesizer,
    GateEngine,
    LearningVelocityEvaluator,
    ProofTierClassifier,
    ScreeningCore,
)
from .core.evaluators.capability import CapabilityConfig
from .core.evaluators.compensation import CompensationConfig
from .core.evaluators.context import ContextConfig
from .core.evaluators.normalizer import NormalizerConfig
from .core.evaluators.velocity import VelocityConfig
from .core.fallback import FallbackConfig
from .core.gate import GateConfig
from .core.tiers import TierConfig
from .pipeline import AnalysisPipeline, BatchConfig


class ForgeContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    profile_source = providers.Singleton(GitHubProfileProvider)

    profile_provider = providers.Singleton(
        RateLimitedProvider,
        provider=profile_source,
        max_in_flight=4,
    )

    weight_adjuster = providers.Singleton(
        MultiplierWeightAdjuster,
        multipliers=config.weight_multipliers,
    )

    normalizer = providers.Singleton(EvidenceNormalizer)
    classifier = providers.Singleton(ProofTierClassifier)
    capability_scorer = providers.Singleton(
        CapabilityScorer,
        classifier=classifier,
        weight_adjuster=weight_adjuster,
    )
    compensation_evaluator = providers.Singleton(CompensationEvaluator)
    context_scorer = providers.Singleton(ContextScorer)
    velocity_evaluator = providers.Singleton(LearningVelocityEvaluator)
    gate_engine = providers.Singleton(GateEngine)

    screening_core = providers.Singleton(
        ScreeningCore,
        normalizer=normalizer,
        classifier=classifier,
        capability=capability_scorer,
        context=context_scorer,
        compensation=compensation_evaluator,
        velocity=velocity_evaluator,
        gate=gate_engine,
    )

    fallback_synthesizer = providers.Singleton(
        FallbackSynthesizer,
        normalizer=normalizer,
        compensation=compensation_evaluator,
        gate=gate_engine,
        weight_adjuster=weight_adjuster,
    )

    batch_config = providers.Singleton(BatchConfig)

    pipeline = providers.Factory(
        AnalysisPipeline,
        core=screening_core,
        fallback=fallback_synthesizer,
        provider=profile_provider,
        config=batch_config,
    )


def create_container(
    *,
    settings: Mapping[str, Any] | None = None,
    profiles: Mapping[str, Any] | Path | None = None,
) -> ForgeContainer:
    """Instantiate the container with optional overrides.

    ``profiles`` switches the upstream provider to the offline fixture
    provider, either from a mapping or from a JSON file.
    """

    container = ForgeContainer()
    settings = settings if isinstance(settings, Mapping) else {}

    core_settings = settings.get("core", {}) or {}
    if core_settings:
        container.config.override(core_settings)

    evaluator_settings = settings.get("evaluators", {}) or {}

    if "normalizer" in evaluator_settings:
        normalizer_config = NormalizerConfig(**evaluator_settings["normalizer"])
        container.normalizer.override(
            providers.Singleton(EvidenceNormalizer, config=normalizer_config)
        )

    if "tiers" in evaluator_settings:
        tier_config = TierConfig(**evaluator_settings["tiers"])
        container.classifier.override(providers.Singleton(ProofTierClassifier, config=tier_config))

    if "capability" in evaluator_settings:
        capability_config = CapabilityConfig(**evaluator_settings["capability"])
        container.capability_scorer.override(
            providers.Singleton(
                CapabilityScorer,
                classifier=container.classifier,
                config=capability_config,
                weight_adjuster=container.weight_adjuster,
            )
        )

    if "context" in evaluator_settings:
        context_config = ContextConfig(**evaluator_settings["context"])
        container.context_scorer.override(providers.Singleton(ContextScorer, config=context_config))

    if "compensation" in evaluator_settings:
        compensation_config = CompensationConfig(**evaluator_settings["compensation"])
        container.compensation_evaluator.override(
            providers.Singleton(CompensationEvaluator, config=compensation_config)
        )

    if "velocity" in evaluator_settings:
        velocity_config = VelocityConfig(**evaluator_settings["velocity"])
        container.velocity_evaluator.override(
            providers.Singleton(LearningVelocityEvaluator, config=velocity_config)
        )

    if "gate" in evaluator_settings:
        gate_config = GateConfig(**evaluator_settings["gate"])
        container.gate_engine.override(providers.Singleton(GateEngine, config=gate_config))

    if "fallback" in evaluator_settings:
        fallback_config = FallbackConfig(**evaluator_settings["fallback"])
        container.fallback_synthesizer.override(
            providers.Singleton(
                FallbackSynthesizer,
                normalizer=container.normalizer,
                compensation=container.compensation_evaluator,
                gate=container.gate_engine,
                config=fallback_config,
                weight_adjuster=container.weight_adjuster,
            )
        )

    batch_settings = settings.get("batch", {}) or {}
    if batch_settings:
        container.batch_config.override(providers.Singleton(BatchConfig, **batch_settings))

    provider_settings = dict(settings.get("provider", {}) or {})
    if profiles is None and provider_settings.get("kind") == "static":
        profiles_path = provider_settings.get("profiles_path")
        if not profiles_path:
            raise ValueError("provider.profiles_path is required for the static provider")
        profiles = Path(profiles_path)

    if profiles is not None:
        source = (
            providers.Singleton(StaticProfileProvider.from_path, profiles)
            if isinstance(profiles, Path)
            else providers.Singleton(StaticProfileProvider, records=profiles)
        )
        container.profile_source.override(source)
    elif provider_settings.get("token") or provider_settings.get("base_url"):
        github_kwargs = {
            key: provider_settings[key] for key in ("token", "base_url") if provider_settings.get(key)
        }
        container.profile_source.override(
            providers.Singleton(GitHubProfileProvider, **github_kwargs)
        )

    if provider_settings.get("max_in_flight") or provider_settings.get("min_interval_seconds"):
        container.profile_provider.override(
            providers.Singleton(
                RateLimitedProvider,
                provider=container.profile_source,
                max_in_flight=provider_settings.get("max_in_flight") or 4,
                min_interval_seconds=provider_settings.get("min_interval_seconds") or 0.0,
            )
        )

    return container
