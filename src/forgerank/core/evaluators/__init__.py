"\"\"\"Evaluator implementations.\"\"\""

from .capability import CapabilityConfig, CapabilityResult, CapabilityScorer
from .compensation import CompensationConfig, CompensationEvaluator
from .context import ContextConfig, ContextResult, ContextScorer
from .normalizer import EvidenceNormalizer, NormalizerConfig
from .velocity import LearningVelocityEvaluator, VelocityConfig, VelocityResult

__all__ = [
    "CapabilityConfig",
    "CapabilityResult",
    "CapabilityScorer",
    "CompensationConfig",
    "CompensationEvaluator",
    "ContextConfig",
    "ContextResult",
    "ContextScorer",
    "EvidenceNormalizer",
    "LearningVelocityEvaluator",
    "NormalizerConfig",
    "VelocityConfig",
    "VelocityResult",
]
