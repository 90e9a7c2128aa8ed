"""Policy builder - presets plus overrides, validated at build time."""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any, Mapping, Sequence

from .models import (
    CANONICAL_ORDER,
    Action,
    ConfigError,
    OversizeMode,
    Policy,
    ThreatCategory,
)

logger = logging.getLogger(__name__)

ALL = "all"

PRESETS: dict[str, float] = {
    "strict": 0.5,
    "moderate": 0.7,
    "lenient": 0.85,
}

DEFAULT_DELIMITERS = ("SYSTEM:", "USER:", "ASSISTANT:", "CONTEXT:")
DEFAULT_MAX_LENGTH = 10_000

OVERRIDE_KEYS = frozenset(
    {"threshold", "thresholds", "actions", "delimiters", "max_length", "oversize"}
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class PolicyBuilder:
    """Immutable builder. Every ``with_*`` call returns a new builder.

    Overrides are recorded as given and only checked by ``build()``, so a
    chain of calls never fails part-way through.
    """

    preset: str = "moderate"
    threshold: Any = None
    thresholds: tuple[tuple[Any, Any], ...] = ()
    actions: tuple[tuple[Any, Any], ...] = ()
    delimiters: Any = None
    max_length: Any = DEFAULT_MAX_LENGTH
    oversize: Any = OversizeMode.REJECT

    @classmethod
    def from_preset(cls, name: str) -> "PolicyBuilder":
        return cls(preset=name)

    def with_preset(self, name: str) -> "PolicyBuilder":
        """Switch preset, dropping any global threshold override."""
        return replace(self, preset=name, threshold=None)

    def with_threshold(self, category: ThreatCategory | str, value: float) -> "PolicyBuilder":
        if category == ALL:
            return replace(self, threshold=value, thresholds=())
        return replace(self, thresholds=self.thresholds + ((category, value),))

    def with_action(self, category: ThreatCategory | str, action: Action | str) -> "PolicyBuilder":
        return replace(self, actions=self.actions + ((category, action),))

    def with_delimiters(self, delimiters: Sequence[str]) -> "PolicyBuilder":
        if isinstance(delimiters, Iterable) and not isinstance(delimiters, (str, bytes)):
            delimiters = tuple(delimiters)
        return replace(self, delimiters=delimiters)

    def with_max_length(self, max_length: int) -> "PolicyBuilder":
        return replace(self, max_length=max_length)

    def with_oversize(self, mode: OversizeMode | str) -> "PolicyBuilder":
        return replace(self, oversize=mode)

    def build(self) -> Policy | ConfigError:
        """Validate everything and return a frozen Policy, or a ConfigError
        listing every problem found."""
        errors: list[str] = []

        base = PRESETS.get(self.preset) if isinstance(self.preset, str) else None
        if base is None:
            errors.append(
                f"Unknown preset: {self.preset!r} (expected one of {', '.join(PRESETS)})"
            )
            base = PRESETS["moderate"]

        threshold = base
        if self.threshold is not None:
            threshold = self._check_threshold(ALL, self.threshold, errors)

        thresholds: dict[ThreatCategory, float] = {}
        for raw_category, raw_value in self.thresholds:
            category = _parse_category(raw_category, errors)
            value = self._check_threshold(raw_category, raw_value, errors)
            if category is not None:
                thresholds[category] = value

        actions = {category: Action.BLOCK for category in CANONICAL_ORDER}
        for raw_category, raw_action in self.actions:
            category = _parse_category(raw_category, errors)
            action = _parse_action(raw_action, errors)
            if category is not None and action is not None:
                actions[category] = action

        delimiters = self._check_delimiters(errors)

        max_length = self.max_length
        if not isinstance(max_length, int) or isinstance(max_length, bool) or max_length <= 0:
            errors.append(f"max_length must be a positive integer, got {self.max_length!r}")

        try:
            oversize = OversizeMode(self.oversize)
        except ValueError:
            errors.append(
                f"Unknown oversize mode: {self.oversize!r} (expected reject or truncate)"
            )
            oversize = OversizeMode.REJECT

        if errors:
            logger.debug(f"Policy build failed: {errors}")
            return ConfigError(errors)

        return Policy(
            threshold=threshold,
            thresholds=thresholds,
            actions=actions,
            delimiters=delimiters,
            max_length=max_length,
            oversize=oversize,
            preset=self.preset,
        )

    @staticmethod
    def _check_threshold(label: Any, value: Any, errors: list[str]) -> float:
        name = label.value if isinstance(label, ThreatCategory) else label
        if not _is_number(value) or math.isnan(value) or not 0.0 <= value <= 1.0:
            errors.append(f"Threshold for {name} must be a number in [0, 1], got {value!r}")
            return 0.0
        return float(value)

    def _check_delimiters(self, errors: list[str]) -> tuple[str, ...]:
        if self.delimiters is None:
            return DEFAULT_DELIMITERS
        if not isinstance(self.delimiters, tuple):
            errors.append(
                f"Delimiters must be a list of strings, got {self.delimiters!r}"
            )
            return DEFAULT_DELIMITERS
        seen: dict[str, None] = {}
        for token in self.delimiters:
            if not isinstance(token, str) or not token.strip():
                errors.append(f"Delimiter tokens must be non-empty strings, got {token!r}")
                continue
            seen.setdefault(token.strip(), None)
        return tuple(seen)


def _parse_category(value: Any, errors: list[str]) -> ThreatCategory | None:
    try:
        return ThreatCategory(value)
    except ValueError:
        errors.append(
            f"Unknown threat category: {value!r} "
            f"(expected one of {', '.join(c.value for c in CANONICAL_ORDER)})"
        )
        return None


def _parse_action(value: Any, errors: list[str]) -> Action | None:
    try:
        return Action(value)
    except ValueError:
        errors.append(
            f"Unknown action: {value!r} (expected one of {', '.join(a.value for a in Action)})"
        )
        return None


def build_policy(
    preset: str = "moderate",
    overrides: Mapping[str, Any] | None = None,
) -> Policy | ConfigError:
    """Build a Policy from a preset name and a mapping of overrides.

    Recognised keys: ``threshold``, ``thresholds`` (category -> float),
    ``actions`` (category -> action), ``delimiters``, ``max_length`` and
    ``oversize``.
    """
    overrides = overrides or {}
    errors = [f"Unknown override: {key!r}" for key in sorted(set(overrides) - OVERRIDE_KEYS)]
    for key in ("thresholds", "actions"):
        value = overrides.get(key)
        if value is not None and not isinstance(value, Mapping):
            errors.append(f"{key} must be a mapping of category to value, got {value!r}")
    if errors:
        return ConfigError(errors)

    builder = PolicyBuilder.from_preset(preset)
    if overrides.get("threshold") is not None:
        builder = builder.with_threshold(ALL, overrides["threshold"])
    for category, value in (overrides.get("thresholds") or {}).items():
        builder = builder.with_threshold(category, value)
    for category, action in (overrides.get("actions") or {}).items():
        builder = builder.with_action(category, action)
    if overrides.get("delimiters") is not None:
        builder = builder.with_delimiters(overrides["delimiters"])
    if overrides.get("max_length") is not None:
        builder = builder.with_max_length(overrides["max_length"])
    if overrides.get("oversize") is not None:
        builder = builder.with_oversize(overrides["oversize"])
    return builder.build()
