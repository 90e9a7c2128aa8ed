"""Validation outcomes - success or rejection."""

from dataclasses import dataclass
from typing import Any

from .models import Action, Decision, Finding, ThreatCategory


def _finding_dict(finding: Finding) -> dict[str, Any]:
    return {
        "detector": finding.detector_id,
        "span": [finding.start, finding.end],
        "confidence": round(finding.confidence, 4),
        "rationale": finding.rationale,
    }


def _decision_dict(decision: Decision) -> dict[str, Any]:
    return {
        "category": decision.category.value,
        "score": round(decision.score, 4),
        "threshold": decision.threshold,
        "configured_action": decision.configured_action.value,
        "action": decision.action.value,
        "findings": [_finding_dict(f) for f in decision.findings],
    }


class PromptInjectionError(Exception):
    """Raised by ``Rejection.unwrap`` for callers that prefer exceptions."""

    def __init__(self, rejection: "Rejection") -> None:
        self.rejection = rejection
        super().__init__(rejection.reason)

    def debug_info(self) -> str:
        return self.rejection.debug_summary()


@dataclass(frozen=True)
class Success:
    """Input accepted, possibly rewritten."""

    text: str
    decisions: tuple[Decision, ...] = ()
    truncated: bool = False

    ok = True

    @property
    def warnings(self) -> tuple[Decision, ...]:
        """Triggered decisions resolved to ``warn``."""
        return tuple(d for d in self.decisions if d.triggered and d.action is Action.WARN)

    @property
    def sanitized(self) -> tuple[ThreatCategory, ...]:
        return tuple(
            d.category for d in self.decisions if d.triggered and d.action is Action.SANITIZE
        )

    def unwrap(self) -> str:
        return self.text

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "text": self.text,
            "truncated": self.truncated,
            "warnings": [_decision_dict(d) for d in self.warnings],
            "decisions": [_decision_dict(d) for d in self.decisions],
        }


@dataclass(frozen=True)
class Rejection:
    """Input refused.

    ``category`` is ``None`` only when the input was refused by the length
    guard before any detector ran.
    """

    category: ThreatCategory | None
    score: float
    threshold: float
    decisions: tuple[Decision, ...] = ()
    reason: str = ""

    ok = False

    @classmethod
    def oversized(cls, length: int, max_length: int) -> "Rejection":
        return cls(
            category=None,
            score=0.0,
            threshold=0.0,
            reason=f"input length {length} exceeds maximum {max_length}",
        )

    def unwrap(self) -> str:
        raise PromptInjectionError(self)

    def debug_summary(self) -> str:
        """Deterministic multi-line report for operators."""
        lines = ["Prompt injection detected"]
        if self.category is None:
            lines.append(f"  reason: {self.reason}")
            return "\n".join(lines)

        lines.append(f"  category: {self.category.value}")
        lines.append(f"  score: {self.score:.2f} (threshold {self.threshold:.2f})")
        lines.append("Decisions:")
        for d in self.decisions:
            marker = "*" if d.category == self.category else "-"
            lines.append(
                f"  {marker} {d.category.value}: score={d.score:.2f} "
                f"threshold={d.threshold:.2f} action={d.action.value} "
                f"(configured {d.configured_action.value}, {d.finding_count} findings)"
            )
            for f in d.findings:
                lines.append(
                    f"      [{f.start}:{f.end}] {f.detector_id} "
                    f"confidence={f.confidence:.2f} - {f.rationale}"
                )
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": False,
            "category": self.category.value if self.category else None,
            "score": round(self.score, 4),
            "threshold": self.threshold,
            "reason": self.reason,
            "decisions": [_decision_dict(d) for d in self.decisions],
        }


ValidationResult = Success | Rejection
