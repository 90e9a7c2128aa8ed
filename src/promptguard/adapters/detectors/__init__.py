"""Threat detector adapters."""

from ...domain.models import CANONICAL_ORDER, ThreatCategory
from ...ports.detector import DetectorPort
from .delimiter_injection import DelimiterInjectionDetector
from .encoding import EncodingDetector
from .instruction_override import InstructionOverrideDetector
from .role_manipulation import RoleManipulationDetector
from .system_prompt_leak import SystemPromptLeakDetector

__all__ = [
    "DelimiterInjectionDetector",
    "EncodingDetector",
    "InstructionOverrideDetector",
    "RoleManipulationDetector",
    "SystemPromptLeakDetector",
    "create_detector",
    "create_detectors",
]


def create_detector(category: ThreatCategory) -> DetectorPort:
    """Create the detector for a category."""
    if category == ThreatCategory.INSTRUCTION_OVERRIDE:
        return InstructionOverrideDetector()
    elif category == ThreatCategory.ROLE_MANIPULATION:
        return RoleManipulationDetector()
    elif category == ThreatCategory.DELIMITER_INJECTION:
        return DelimiterInjectionDetector()
    elif category == ThreatCategory.SYSTEM_PROMPT_LEAK:
        return SystemPromptLeakDetector()
    elif category == ThreatCategory.ENCODING:
        return EncodingDetector()
    else:
        raise ValueError(f"Unknown threat category: {category}")


def create_detectors() -> list[DetectorPort]:
    """One detector per category, in canonical order."""
    return [create_detector(category) for category in CANONICAL_ORDER]
