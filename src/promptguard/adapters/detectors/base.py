"""Shared matching helpers for the phrase-based detectors.

Patterns are built from literal words and character classes with no nested
unbounded repetition, and whitespace runs are matched possessively, so a
scan costs time linear in the input.
"""

import re
from dataclasses import dataclass
from typing import Pattern

from ...domain.models import Finding, Policy, ThreatCategory
from ...ports.detector import DetectorPort

REDACTED = "[REDACTED]"

# Zero-width, bidi-control and other invisible formatting characters
INVISIBLE_RE = re.compile(
    "[\u00ad\u180e\u200b-\u200f\u202a-\u202e\u2060-\u2064\u2066-\u2069\ufeff]"
)
_WORD_RE = re.compile(r"\w+")


def _p(pattern: str, flags: int = re.IGNORECASE) -> Pattern[str]:
    return re.compile(pattern, flags)


@dataclass(frozen=True)
class PhrasePattern:
    """A compiled phrase pattern with its base confidence."""

    name: str
    pattern: Pattern[str]
    confidence: float
    rationale: str


@dataclass(frozen=True)
class Match:
    start: int
    end: int
    phrase: PhrasePattern


def fold_invisible(text: str) -> tuple[str, list[int]]:
    """Drop invisible characters, keeping a map from folded to original offsets."""
    if not INVISIBLE_RE.search(text):
        return text, []
    chars: list[str] = []
    offsets: list[int] = []
    for i, ch in enumerate(text):
        if INVISIBLE_RE.match(ch):
            continue
        chars.append(ch)
        offsets.append(i)
    return "".join(chars), offsets


def word_count(text: str) -> int:
    return len(_WORD_RE.findall(text))


def find_matches(text: str, phrases: list[PhrasePattern]) -> list[Match]:
    """Return non-overlapping matches of ``phrases`` in ``text``.

    Matching runs on the invisible-folded text; spans are mapped back to the
    original. Where matches overlap the earliest (then longest) wins.
    """
    folded, offsets = fold_invisible(text)
    found: list[Match] = []
    for phrase in phrases:
        for m in phrase.pattern.finditer(folded):
            if m.end() == m.start():
                continue
            start, end = m.start(), m.end()
            if offsets:
                start, end = offsets[start], offsets[end - 1] + 1
            found.append(Match(start, end, phrase))

    found.sort(key=lambda x: (x.start, -x.end))
    deduped: list[Match] = []
    last_end = -1
    for match in found:
        if match.start >= last_end:
            deduped.append(match)
            last_end = match.end
    return deduped


def replace_spans(text: str, spans: list[tuple[int, int]], replacement: str) -> str:
    """Replace each span with ``replacement``, merging overlapping spans."""
    if not spans:
        return text

    merged: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start < merged[-1][1]:
            prev_start, prev_end = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))

    parts: list[str] = []
    prev_end = 0
    for start, end in merged:
        parts.append(text[prev_end:start])
        parts.append(replacement)
        prev_end = end
    parts.append(text[prev_end:])
    return "".join(parts)


class PhraseDetector(DetectorPort):
    """Base for detectors driven by a curated phrase family.

    Subclasses provide ``phrases`` and may override ``score`` to turn the
    list of matches into per-finding confidences.
    """

    detector_id: str
    category: ThreatCategory
    phrases: list[PhrasePattern]
    placeholder: str = REDACTED

    def detect(self, text: str, policy: Policy) -> list[Finding]:
        matches = find_matches(text, self.phrases)
        if not matches:
            return []
        return [
            Finding(
                category=self.category,
                start=match.start,
                end=match.end,
                confidence=round(min(1.0, max(0.0, confidence)), 4),
                detector_id=f"{self.detector_id}.{match.phrase.name}",
                rationale=match.phrase.rationale,
            )
            for match, confidence in zip(matches, self.score(text, matches))
        ]

    def score(self, text: str, matches: list[Match]) -> list[float]:
        return [match.phrase.confidence for match in matches]

    def sanitize(self, text: str, findings: list[Finding]) -> str:
        return replace_spans(text, [f.span for f in findings], self.placeholder)
