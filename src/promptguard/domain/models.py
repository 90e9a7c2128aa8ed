"""Domain models."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class ThreatCategory(str, Enum):
    """Threat categories, declared in canonical processing order."""

    INSTRUCTION_OVERRIDE = "instructionOverride"
    ROLE_MANIPULATION = "roleManipulation"
    DELIMITER_INJECTION = "delimiterInjection"
    SYSTEM_PROMPT_LEAK = "systemPromptLeak"
    ENCODING = "encoding"


CANONICAL_ORDER: tuple[ThreatCategory, ...] = tuple(ThreatCategory)


class Action(str, Enum):
    """Response to a triggered category."""

    BLOCK = "block"
    SANITIZE = "sanitize"
    WARN = "warn"
    ALLOW = "allow"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {Action.BLOCK: 3, Action.SANITIZE: 2, Action.WARN: 1, Action.ALLOW: 0}


class OversizeMode(str, Enum):
    """What to do with input longer than the policy's max length."""

    REJECT = "reject"
    TRUNCATE = "truncate"


class ConfigError(Exception):
    """Invalid policy configuration, reported by ``PolicyBuilder.build``."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass(frozen=True)
class Finding:
    """A single detector match."""

    category: ThreatCategory
    start: int
    end: int
    confidence: float
    detector_id: str
    rationale: str

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)


@dataclass(frozen=True)
class Decision:
    """Per-category aggregation of findings into a resolved action."""

    category: ThreatCategory
    score: float
    threshold: float
    configured_action: Action
    action: Action
    findings: tuple[Finding, ...] = ()

    @property
    def triggered(self) -> bool:
        return bool(self.findings) and self.score >= self.threshold

    @property
    def finding_count(self) -> int:
        return len(self.findings)


@dataclass(frozen=True)
class Policy:
    """Immutable validation policy. Build it with ``PolicyBuilder``."""

    threshold: float
    actions: Mapping[ThreatCategory, Action] = field(hash=False)
    thresholds: Mapping[ThreatCategory, float] = field(
        default_factory=dict, hash=False
    )
    delimiters: tuple[str, ...] = ()
    max_length: int = 10_000
    oversize: OversizeMode = OversizeMode.REJECT
    preset: str | None = None

    def __post_init__(self) -> None:
        # Read-only views so shared policies cannot be mutated through the mappings
        object.__setattr__(self, "actions", MappingProxyType(dict(self.actions)))
        object.__setattr__(
            self, "thresholds", MappingProxyType(dict(self.thresholds))
        )

    def threshold_for(self, category: ThreatCategory) -> float:
        """Effective threshold: category override, else the global one."""
        return self.thresholds.get(category, self.threshold)

    def action_for(self, category: ThreatCategory) -> Action:
        return self.actions.get(category, Action.BLOCK)
