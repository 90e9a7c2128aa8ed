"""Detector port - interface for threat detection."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.models import Finding, Policy, ThreatCategory


class DetectorPort(ABC):
    """Interface for a single-category threat detector.

    Implementations must be pure: the same (text, policy) always yields the
    same findings, with no I/O and no state kept between calls.
    """

    detector_id: str
    category: "ThreatCategory"

    @abstractmethod
    def detect(self, text: str, policy: "Policy") -> list["Finding"]:
        """Scan text and return findings with spans into ``text``."""
        pass

    @abstractmethod
    def sanitize(self, text: str, findings: list["Finding"]) -> str:
        """Rewrite the spans of ``findings`` (produced from ``text``)."""
        pass
