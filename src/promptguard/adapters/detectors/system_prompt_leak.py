"""Detector for requests to reveal hidden instructions."""

from ...domain.models import ThreatCategory
from .base import PhraseDetector, PhrasePattern, _p

LEAK_CONFIDENCE = 0.9

_QUALIFIER = r"(?:hidden|secret|initial|original|internal|full|entire|system)"
_NOUN = r"(?:prompts?|instructions?|rules|guidelines|directives)"
# "your rules" or "the system prompt"; a bare "the rules" is too common to flag
_TARGET = rf"(?:your\s++(?:{_QUALIFIER}\s++)?(?:{_QUALIFIER}\s++)?{_NOUN}|the\s++{_QUALIFIER}\s++(?:{_QUALIFIER}\s++)?{_NOUN})"

PHRASES = [
    PhrasePattern(
        "reveal",
        _p(
            r"\b(?:reveal|show|print|display|output|dump|leak|expose|repeat|recite|tell|give|share)"
            rf"\s++(?:me\s++|us\s++)?(?:all\s++)?(?:of\s++)?{_TARGET}"
        ),
        LEAK_CONFIDENCE,
        "asks to reveal the system prompt",
    ),
    PhrasePattern(
        "what_are",
        _p(rf"\bwhat\s++(?:are|were|is|was)\s++{_TARGET}"),
        LEAK_CONFIDENCE,
        "asks what the hidden instructions are",
    ),
    PhrasePattern(
        "repeat_above",
        _p(r"\b(?:repeat|print|output|copy)\s++(?:everything|all|the\s++text|the\s++words)\s++(?:above|before\s++this|verbatim)"),
        LEAK_CONFIDENCE,
        "asks to echo preceding hidden text",
    ),
]


class SystemPromptLeakDetector(PhraseDetector):
    """Meta-requests for hidden instructions. Any match is a near-definitive
    signal, so every finding carries the same flat confidence."""

    detector_id = "system_prompt_leak"
    category = ThreatCategory.SYSTEM_PROMPT_LEAK
    phrases = PHRASES
