"""Detector for role delimiters embedded in submitted text."""

import re
from functools import lru_cache

from ...domain.models import Finding, Policy, ThreatCategory
from .base import PhraseDetector, PhrasePattern, _p, find_matches, replace_spans

# A single embedded token reaches the lenient threshold on its own.
BASE_CONFIDENCE = 0.8
PER_TOKEN = 0.05

# Chat-template control tokens, flagged whatever the configured delimiters are
TEMPLATE_PHRASES = [
    PhrasePattern("template", _p(r"<\|\s*+[a-z_]{1,24}\s*+\|>"), 0.0, "chat template control token"),
    PhrasePattern("template", _p(r"\[/?INST\]"), 0.0, "instruction block marker"),
    PhrasePattern("template", _p(r"<</?SYS>>"), 0.0, "system block marker"),
]

_NAME_RE = re.compile(r"[^A-Za-z0-9_]")


@lru_cache(maxsize=64)
def compile_delimiters(delimiters: tuple[str, ...]) -> tuple[tuple[str, PhrasePattern], ...]:
    """Build (token, pattern) pairs for the configured delimiter tokens.

    Each token matches literally (``SYSTEM:``) and, through its bare name,
    as an opening/closing tag (``<system>``, ``[/system]``).
    """
    compiled: list[tuple[str, PhrasePattern]] = []
    for token in delimiters:
        compiled.append((
            token,
            PhrasePattern(
                "literal",
                _p(rf"(?<![A-Za-z0-9]){re.escape(token)}"),
                0.0,
                f"embedded delimiter {token!r}",
            ),
        ))
        name = _NAME_RE.sub("", token)
        if name:
            compiled.append((
                token,
                PhrasePattern(
                    "tag",
                    _p(rf"<\s*+(?:/\s*+)?{name}\s*+>|\[\s*+(?:/\s*+)?{name}\s*+\]"),
                    0.0,
                    f"{name!r} delimiter written as a tag",
                ),
            ))
    for phrase in TEMPLATE_PHRASES:
        compiled.append((phrase.pattern.pattern, phrase))
    return tuple(compiled)


class DelimiterInjectionDetector(PhraseDetector):
    """Case-insensitive scan for delimiter tokens supplied inside the text.

    Confidence grows with the number of distinct tokens seen, not with how
    often they repeat.
    """

    detector_id = "delimiter_injection"
    category = ThreatCategory.DELIMITER_INJECTION
    placeholder = ""

    def detect(self, text: str, policy: Policy) -> list[Finding]:
        compiled = compile_delimiters(policy.delimiters)
        token_for = {phrase: token for token, phrase in compiled}
        matches = find_matches(text, [phrase for _, phrase in compiled])
        if not matches:
            return []

        distinct = {token_for[m.phrase] for m in matches}
        confidence = min(1.0, BASE_CONFIDENCE + PER_TOKEN * len(distinct))
        return [
            Finding(
                category=self.category,
                start=m.start,
                end=m.end,
                confidence=round(confidence, 4),
                detector_id=f"{self.detector_id}.{m.phrase.name}",
                rationale=m.phrase.rationale,
            )
            for m in matches
        ]

    def sanitize(self, text: str, findings: list[Finding]) -> str:
        # Strip the tokens outright
        return replace_spans(text, [f.span for f in findings], self.placeholder)
