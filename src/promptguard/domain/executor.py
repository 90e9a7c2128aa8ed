"""Action executor - applies resolved actions in canonical order."""

import logging
from typing import Mapping

from ..ports.detector import DetectorPort
from .models import Action, Decision, Policy, ThreatCategory
from .results import Rejection, Success
from .scoring import first_blocking

logger = logging.getLogger(__name__)

# Stripping a token can splice a new one together ("<sys<system>tem>"), so
# sanitizing repeats until the detector comes back empty.
MAX_SANITIZE_PASSES = 8


class SanitizeError(Exception):
    """A category could not be sanitized."""


def sanitize_category(text: str, detector: DetectorPort, policy: Policy) -> str:
    """Rewrite every match of ``detector`` until none remain."""
    current = text
    for _ in range(MAX_SANITIZE_PASSES):
        findings = detector.detect(current, policy)
        if not findings:
            return current
        current = detector.sanitize(current, findings)
    if detector.detect(current, policy):
        raise SanitizeError(
            f"{detector.category.value} still matches after {MAX_SANITIZE_PASSES} passes"
        )
    return current


def execute(
    text: str,
    decisions: tuple[Decision, ...],
    detectors: Mapping[ThreatCategory, DetectorPort],
    policy: Policy,
    truncated: bool = False,
) -> Success | Rejection:
    """Turn decisions into a result.

    A ``block`` anywhere wins: the first one in canonical order is reported
    and no rewrites are applied. Otherwise ``sanitize`` rewrites run in
    canonical order on the progressively rewritten text.
    """
    blocking = first_blocking(decisions)
    if blocking is not None:
        logger.info(
            f"Rejected: {blocking.category.value} "
            f"score={blocking.score:.2f} threshold={blocking.threshold:.2f}"
        )
        return Rejection(
            category=blocking.category,
            score=blocking.score,
            threshold=blocking.threshold,
            decisions=decisions,
            reason=(
                f"{blocking.category.value} score {blocking.score:.2f} "
                f"reached threshold {blocking.threshold:.2f}"
            ),
        )

    current = text
    for decision in decisions:
        if decision.action is Action.SANITIZE:
            try:
                current = sanitize_category(current, detectors[decision.category], policy)
            except Exception as e:
                # Fail closed: an input we cannot clean is refused
                logger.exception(f"Sanitizing {decision.category.value} failed: {e}")
                return Rejection(
                    category=decision.category,
                    score=decision.score,
                    threshold=decision.threshold,
                    decisions=decisions,
                    reason=f"{decision.category.value} could not be sanitized: {e}",
                )
            logger.info(f"Sanitized {decision.category.value} ({decision.finding_count} findings)")
        elif decision.action is Action.WARN:
            logger.warning(
                f"Warning: {decision.category.value} score={decision.score:.2f} "
                f"threshold={decision.threshold:.2f}"
            )

    return Success(text=current, decisions=decisions, truncated=truncated)
