"""Detector for attempts to override prior directives."""

from ...domain.models import ThreatCategory
from .base import Match, PhraseDetector, PhrasePattern, _p

# Matches starting within this many characters (or this fraction of the text)
# count as front-loaded.
LEADING_CHARS = 40
LEADING_FRACTION = 0.1
POSITION_BOOST = 0.1

_PRIOR = r"(?:previous|prior|above|earlier|preceding|foregoing|original|initial)"
_RULES = r"(?:instructions?|prompts?|rules?|directions?|directives?|guidelines?|commands?|context|orders?)"

PHRASES = [
    PhrasePattern(
        "ignore_previous",
        _p(rf"\b(?:ignore|skip|bypass)\s++(?:all\s++|any\s++)?(?:of\s++)?(?:the\s++|your\s++|my\s++)?{_PRIOR}\s++{_RULES}"),
        0.9,
        "asks to ignore earlier instructions",
    ),
    PhrasePattern(
        "disregard",
        _p(rf"\bdisregard\s++(?:all\s++|any\s++)?(?:of\s++)?(?:the\s++|your\s++|my\s++)?(?:{_PRIOR}\s++)?(?:{_RULES}|above|everything)"),
        0.85,
        "asks to disregard earlier content",
    ),
    PhrasePattern(
        "forget",
        _p(rf"\bforget\s++(?:all\s++|about\s++)?(?:of\s++)?(?:the\s++|your\s++|my\s++)?(?:{_PRIOR}\s++)?(?:{_RULES}|everything|training)"),
        0.8,
        "asks to forget rules or instructions",
    ),
    PhrasePattern(
        "ignore_everything",
        _p(r"\bignore\s++(?:everything|all)\s++(?:above|before|said|(?:you\s++were|you've\s++been|i)\s++(?:told|said))"),
        0.85,
        "asks to ignore everything said before",
    ),
    PhrasePattern(
        "override",
        _p(rf"\b(?:override|overwrite|replace)\s++(?:all\s++)?(?:the\s++|your\s++)?(?:{_PRIOR}\s++|system\s++|safety\s++)?{_RULES}"),
        0.8,
        "asks to replace existing instructions",
    ),
    PhrasePattern(
        "do_not_follow",
        _p(rf"\b(?:do\s++not|don't|stop|no\s++longer)\s++(?:follow|obey|listen\s++to)\s++(?:any\s++|the\s++|your\s++)?(?:{_PRIOR}\s++)?{_RULES}"),
        0.75,
        "asks to stop following instructions",
    ),
    PhrasePattern(
        "ignore_rules",
        _p(r"\bignore\s++(?:all\s++)?(?:the\s++|your\s++)?(?:instructions?|rules?|guidelines?|directives?)\b"),
        0.7,
        "asks to ignore rules",
    ),
    PhrasePattern(
        "new_instructions",
        _p(r"\b(?:new|updated|real)\s++(?:instructions?|rules?|directives?)\s*+:"),
        0.7,
        "introduces replacement instructions",
    ),
]


class InstructionOverrideDetector(PhraseDetector):
    """Override phrasing; confidence by phrase specificity, boosted when
    the phrase appears at the front of the text."""

    detector_id = "instruction_override"
    category = ThreatCategory.INSTRUCTION_OVERRIDE
    phrases = PHRASES

    def score(self, text: str, matches: list[Match]) -> list[float]:
        leading = max(LEADING_CHARS, int(len(text) * LEADING_FRACTION))
        return [
            match.phrase.confidence + (POSITION_BOOST if match.start < leading else 0.0)
            for match in matches
        ]
