"""Domain layer - policy, scoring and the validation pipeline."""

from .builder import PRESETS, PolicyBuilder, build_policy
from .models import (
    CANONICAL_ORDER,
    Action,
    ConfigError,
    Decision,
    Finding,
    OversizeMode,
    Policy,
    ThreatCategory,
)
from .results import PromptInjectionError, Rejection, Success, ValidationResult

__all__ = [
    "CANONICAL_ORDER",
    "PRESETS",
    "Action",
    "ConfigError",
    "Decision",
    "Finding",
    "OversizeMode",
    "Policy",
    "PolicyBuilder",
    "PromptInjectionError",
    "Rejection",
    "Success",
    "ThreatCategory",
    "ValidationResult",
    "build_policy",
]
