"""Scoring and decision - findings in, one resolved action per category out."""

from typing import Iterable, Sequence

from .models import CANONICAL_ORDER, Action, Decision, Finding, Policy, ThreatCategory


def aggregate(findings: Iterable[Finding]) -> float:
    """Max confidence (not the sum), so many weak matches cannot add up."""
    return max((f.confidence for f in findings), default=0.0)


def decide(findings: Iterable[Finding], policy: Policy) -> tuple[Decision, ...]:
    """Resolve one Decision per category, in canonical order.

    A category below its threshold resolves to ``allow`` whatever action the
    policy configures for it.
    """
    by_category: dict[ThreatCategory, list[Finding]] = {c: [] for c in CANONICAL_ORDER}
    for finding in findings:
        by_category[finding.category].append(finding)

    decisions = []
    for category in CANONICAL_ORDER:
        category_findings = tuple(
            sorted(by_category[category], key=lambda f: (f.start, f.end, f.detector_id))
        )
        score = aggregate(category_findings)
        threshold = policy.threshold_for(category)
        configured = policy.action_for(category)
        triggered = bool(category_findings) and score >= threshold
        decisions.append(
            Decision(
                category=category,
                score=score,
                threshold=threshold,
                configured_action=configured,
                action=configured if triggered else Action.ALLOW,
                findings=category_findings,
            )
        )
    return tuple(decisions)


def first_blocking(decisions: Iterable[Decision]) -> Decision | None:
    """The earliest canonical-order decision resolved to ``block``."""
    for decision in sorted(decisions, key=lambda d: CANONICAL_ORDER.index(d.category)):
        if decision.action is Action.BLOCK:
            return decision
    return None


def merge_decisions(rounds: Sequence[tuple[Decision, ...]]) -> tuple[Decision, ...]:
    """Fold the decisions of several validation rounds into one per category.

    The most severe resolved action wins; on a tie the earliest round is kept.
    """
    merged: dict[ThreatCategory, Decision] = {}
    for decisions in rounds:
        for decision in decisions:
            current = merged.get(decision.category)
            if current is None or decision.action.severity > current.action.severity:
                merged[decision.category] = decision
    return tuple(merged[c] for c in CANONICAL_ORDER if c in merged)
