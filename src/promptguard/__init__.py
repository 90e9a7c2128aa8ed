"""Prompt-injection validation and sanitization for untrusted LLM input.

Build a policy once and reuse it::

    policy = PolicyBuilder.from_preset("moderate").with_action(
        "roleManipulation", "sanitize"
    ).build()
    result = validate(user_text, policy)
    if result.ok:
        send_to_llm(result.text)
    else:
        print(result.debug_summary())
"""

from .adapters.detectors import create_detectors
from .domain import (
    CANONICAL_ORDER,
    PRESETS,
    Action,
    ConfigError,
    Decision,
    Finding,
    OversizeMode,
    Policy,
    PolicyBuilder,
    PromptInjectionError,
    Rejection,
    Success,
    ThreatCategory,
    ValidationResult,
    build_policy,
)
from .domain.services import ValidationService

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
    "ValidationService",
    "build_policy",
    "validate",
]

_default_service = ValidationService(create_detectors())


def validate(text: str, policy: Policy) -> Success | Rejection:
    """Validate ``text`` against ``policy`` with the built-in detectors."""
    return _default_service.validate(text, policy)
