"""Detector for character-level smuggling."""

import re

from ...domain.models import Finding, Policy, ThreatCategory
from ...ports.detector import DetectorPort
from .base import INVISIBLE_RE

MIN_BASE64_RUN = 24
MIN_HEX_RUN = 32

INVISIBLE_BASE = 0.5
INVISIBLE_SCALE = 5.0
ENCODED_BASE = 0.4
CONTROL_MIN_RATIO = 0.05
CONTROL_BASE = 0.3
CONTROL_SCALE = 3.0

_INVISIBLE_RUN_RE = re.compile(INVISIBLE_RE.pattern + "+")
# C0/C1 controls other than tab, newline and carriage return
_CONTROL_RUN_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]+")
_BASE64_RUN_RE = re.compile(rf"(?<![A-Za-z0-9+/])[A-Za-z0-9+/]{{{MIN_BASE64_RUN},}}+={{0,2}}")
_HEX_RUN_RE = re.compile(rf"\b(?:0x)?[0-9a-fA-F]{{{MIN_HEX_RUN},}}+\b")


def _looks_base64(run: str) -> bool:
    body = run.rstrip("=")
    has_upper = any(c.isupper() for c in body)
    has_lower = any(c.islower() for c in body)
    has_other = any(c.isdigit() or c in "+/" for c in body)
    return has_upper and has_lower and has_other


def _looks_hex(run: str) -> bool:
    body = run[2:] if run[:2].lower() == "0x" else run
    return any(c.isdigit() for c in body) and any(c.isalpha() for c in body)


class EncodingDetector(DetectorPort):
    """Encoded runs, invisible characters and control-character noise.

    Confidence scales with the share of the text the anomaly covers.
    Sanitizing removes invisible and control characters and replaces encoded
    runs with a printable marker naming the encoding.
    """

    detector_id = "encoding"
    category = ThreatCategory.ENCODING

    def detect(self, text: str, policy: Policy) -> list[Finding]:
        if not text:
            return []
        length = len(text)
        findings: list[Finding] = []

        invisible = list(_INVISIBLE_RUN_RE.finditer(text))
        if invisible:
            ratio = sum(m.end() - m.start() for m in invisible) / length
            confidence = min(1.0, INVISIBLE_BASE + ratio * INVISIBLE_SCALE)
            for m in invisible:
                findings.append(self._finding(
                    m.start(), m.end(), confidence, "invisible",
                    f"{m.end() - m.start()} zero-width or bidi control character(s)",
                ))

        controls = list(_CONTROL_RUN_RE.finditer(text))
        if controls:
            ratio = sum(m.end() - m.start() for m in controls) / length
            if ratio >= CONTROL_MIN_RATIO:
                confidence = min(1.0, CONTROL_BASE + ratio * CONTROL_SCALE)
                for m in controls:
                    findings.append(self._finding(
                        m.start(), m.end(), confidence, "control",
                        f"non-printable characters make up {ratio:.0%} of the text",
                    ))

        hex_starts: set[int] = set()
        for m in _HEX_RUN_RE.finditer(text):
            if _looks_hex(m.group(0)):
                hex_starts.add(m.start())
                confidence = min(1.0, ENCODED_BASE + (m.end() - m.start()) / length)
                findings.append(self._finding(
                    m.start(), m.end(), confidence, "hex",
                    f"{m.end() - m.start()}-character hex-encoded run",
                ))

        for m in _BASE64_RUN_RE.finditer(text):
            if m.start() in hex_starts:
                continue
            if _looks_base64(m.group(0)):
                confidence = min(1.0, ENCODED_BASE + (m.end() - m.start()) / length)
                findings.append(self._finding(
                    m.start(), m.end(), confidence, "base64",
                    f"{m.end() - m.start()}-character base64-like run",
                ))

        findings.sort(key=lambda f: (f.start, f.end))
        return findings

    def sanitize(self, text: str, findings: list[Finding]) -> str:
        markers = {
            "encoding.hex": "[ENCODED:hex]",
            "encoding.base64": "[ENCODED:base64]",
        }
        parts: list[str] = []
        prev_end = 0
        for f in sorted(findings, key=lambda f: (f.start, -f.end)):
            if f.start < prev_end:
                continue
            parts.append(text[prev_end:f.start])
            parts.append(markers.get(f.detector_id, ""))
            prev_end = f.end
        parts.append(text[prev_end:])
        cleaned = "".join(parts)
        # Strip leftovers that were below the reporting ratio
        cleaned = _INVISIBLE_RUN_RE.sub("", cleaned)
        return _CONTROL_RUN_RE.sub("", cleaned)

    def _finding(
        self, start: int, end: int, confidence: float, kind: str, rationale: str
    ) -> Finding:
        return Finding(
            category=self.category,
            start=start,
            end=end,
            confidence=round(confidence, 4),
            detector_id=f"{self.detector_id}.{kind}",
            rationale=rationale,
        )
