"""Detector for role-reassignment phrasing."""

from ...domain.models import ThreatCategory
from .base import Match, PhraseDetector, PhrasePattern, _p, word_count

# One match per this many words saturates the score at 1.0.
WORDS_PER_MATCH = 12

PHRASES = [
    PhrasePattern(
        "you_are_now",
        _p(r"\byou\s++are\s++now\b"),
        1.0,
        "reassigns the assistant's identity",
    ),
    PhrasePattern(
        "from_now_on",
        _p(r"\bfrom\s++now\s++on,?\s++(?:you\s++(?:are|will|must|shall)|act|behave|respond)\b"),
        1.0,
        "redefines behaviour from this point on",
    ),
    PhrasePattern(
        "act_as",
        _p(r"\b(?:act|behave|respond|roleplay|role-play)\s++as\s++(?:if\s++you\s++(?:are|were)\b|an?\b|the\b|my\b)"),
        1.0,
        "asks the assistant to act as someone else",
    ),
    PhrasePattern(
        "pretend",
        _p(r"\bpretend\s++(?:to\s++be|that\s++you\s++are|you\s++are|you're)\b"),
        1.0,
        "asks the assistant to pretend",
    ),
    PhrasePattern(
        "no_longer",
        _p(r"\byou(?:\s++are|'re)\s++no\s++longer\b"),
        1.0,
        "tells the assistant it is no longer itself",
    ),
    PhrasePattern(
        "mode_switch",
        _p(r"\b(?:enter|enable|activate|switch\s++to)\s++(?:developer|dan|god|jailbreak|unrestricted)\s++mode\b"),
        1.0,
        "asks for an unrestricted mode",
    ),
]


class RoleManipulationDetector(PhraseDetector):
    """Role-reassignment phrasing.

    The score is a density: match count normalized by text length in words,
    so one phrase in a long document scores low.
    """

    detector_id = "role_manipulation"
    category = ThreatCategory.ROLE_MANIPULATION
    phrases = PHRASES

    def score(self, text: str, matches: list[Match]) -> list[float]:
        windows = max(1.0, word_count(text) / WORDS_PER_MATCH)
        density = min(1.0, len(matches) / windows)
        return [density for _ in matches]
