"""Domain services - orchestrate the validation pipeline."""

import logging
from typing import Sequence

from ..ports.detector import DetectorPort
from .executor import execute
from .models import Action, Decision, Finding, OversizeMode, Policy
from .results import Rejection, Success
from .scoring import decide, merge_decisions

logger = logging.getLogger(__name__)

# Rewrites can splice fragments into a new threat ("Ignore all <system>previous
# instructions"), so sanitized text is validated again until it is stable.
MAX_VALIDATION_ROUNDS = 4


class ValidationService:
    """Runs text through the detectors and applies the policy."""

    def __init__(self, detectors: Sequence[DetectorPort]) -> None:
        self.detectors = list(detectors)
        self.by_category = {d.category: d for d in self.detectors}

    def validate(self, text: str, policy: Policy) -> Success | Rejection:
        """Validate text against a policy.

        Pipeline:
            1. Length guard (reject or truncate)
            2. Detection, every category
            3. Decision per category
            4. Actions in canonical order
            5. Steps 2-4 again on rewritten text, until nothing is sanitized

        Never raises for hostile input; rejections are returned.
        """
        truncated = False
        if len(text) > policy.max_length:
            if policy.oversize is OversizeMode.TRUNCATE:
                logger.info(f"Truncating input from {len(text)} to {policy.max_length} characters")
                text = text[: policy.max_length]
                truncated = True
            else:
                logger.info(f"Rejected: input length {len(text)} exceeds {policy.max_length}")
                return Rejection.oversized(len(text), policy.max_length)

        rounds: list[tuple[Decision, ...]] = []
        current = text
        for _ in range(MAX_VALIDATION_ROUNDS):
            decisions = self._decide(current, policy)
            rounds.append(decisions)
            result = execute(current, decisions, self.by_category, policy, truncated=truncated)
            if isinstance(result, Rejection) or not any(
                d.action is Action.SANITIZE for d in decisions
            ):
                break
            logger.debug(f"Re-validating rewritten text (round {len(rounds) + 1})")
            current = result.text
        else:
            return self._unstable(rounds)

        if isinstance(result, Success) and len(rounds) > 1:
            return Success(text=result.text, decisions=merge_decisions(rounds), truncated=truncated)
        return result

    def _decide(self, text: str, policy: Policy) -> tuple[Decision, ...]:
        findings: list[Finding] = []
        for detector in self.detectors:
            findings.extend(self._run_detector(detector, text, policy))

        decisions = decide(findings, policy)
        for d in decisions:
            logger.debug(
                f"{d.category.value}: score={d.score:.2f} threshold={d.threshold:.2f} "
                f"action={d.action.value} findings={d.finding_count}"
            )
        return decisions

    def _unstable(self, rounds: list[tuple[Decision, ...]]) -> Rejection:
        """Refuse input whose sanitized form keeps changing."""
        cause = next(d for d in rounds[-1] if d.action is Action.SANITIZE)
        logger.info(
            f"Rejected: {cause.category.value} rewrites still changing "
            f"after {MAX_VALIDATION_ROUNDS} rounds"
        )
        return Rejection(
            category=cause.category,
            score=cause.score,
            threshold=cause.threshold,
            decisions=merge_decisions(rounds),
            reason=(
                f"{cause.category.value} rewrites still changing "
                f"after {MAX_VALIDATION_ROUNDS} rounds"
            ),
        )

    def _run_detector(self, detector: DetectorPort, text: str, policy: Policy) -> list[Finding]:
        """Run one detector; a fault counts as a full-confidence match."""
        try:
            return detector.detect(text, policy)
        except Exception as e:
            logger.exception(f"Detector {detector.detector_id} failed: {e}")
            return [
                Finding(
                    category=detector.category,
                    start=0,
                    end=len(text),
                    confidence=1.0,
                    detector_id=f"{detector.detector_id}.fault",
                    rationale=f"detector failed ({type(e).__name__}); failing closed",
                )
            ]
