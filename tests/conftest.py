"""Shared test fixtures."""

from unittest.mock import MagicMock

import pytest

from promptguard.adapters.detectors import create_detectors
from promptguard.domain.builder import PolicyBuilder
from promptguard.domain.models import Policy, ThreatCategory
from promptguard.domain.services import ValidationService
from promptguard.ports.detector import DetectorPort


def build(builder: PolicyBuilder) -> Policy:
    policy = builder.build()
    assert isinstance(policy, Policy), f"Expected a policy, got {policy!r}"
    return policy


@pytest.fixture
def moderate_policy() -> Policy:
    """Default moderate policy (threshold 0.7, everything blocks)."""
    return build(PolicyBuilder.from_preset("moderate"))


@pytest.fixture
def strict_policy() -> Policy:
    return build(PolicyBuilder.from_preset("strict"))


@pytest.fixture
def lenient_policy() -> Policy:
    return build(PolicyBuilder.from_preset("lenient"))


@pytest.fixture
def service() -> ValidationService:
    """Validation service wired with the built-in detectors."""
    return ValidationService(create_detectors())


@pytest.fixture
def failing_detector() -> MagicMock:
    """Detector port whose detect() always raises."""
    mock = MagicMock(spec=DetectorPort)
    mock.detector_id = "broken"
    mock.category = ThreatCategory.ROLE_MANIPULATION
    mock.detect.side_effect = RuntimeError("regex engine exploded")
    return mock
