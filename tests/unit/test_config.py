"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from promptguard.config import (
    LimitsConfig,
    PolicyConfig,
    Settings,
    builder_from_settings,
    load_settings,
    parse_delimiters,
)
from promptguard.domain.models import Action, ConfigError, OversizeMode, Policy, ThreatCategory


class TestParseDelimiters:
    """Tests for parse_delimiters."""

    def test_comma_separated(self) -> None:
        assert parse_delimiters("CONTEXT:, USER:, SYSTEM:") == ["CONTEXT:", "USER:", "SYSTEM:"]

    def test_blanks_dropped(self) -> None:
        assert parse_delimiters(" , USER:,, ") == ["USER:"]


class TestLoadSettings:
    """Tests for load_settings."""

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "missing.toml")
        assert settings.policy.preset == "moderate"
        assert settings.limits.max_length == 10_000

    def test_loads_toml(self, tmp_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text(
            "[policy]\n"
            'preset = "strict"\n'
            'delimiters = "CONTEXT:, USER:"\n'
            "[policy.thresholds]\n"
            "encoding = 0.9\n"
            "[policy.actions]\n"
            'roleManipulation = "sanitize"\n'
            "[limits]\n"
            "max_length = 500\n"
            'oversize = "truncate"\n'
        )
        settings = load_settings(config)
        assert settings.policy.preset == "strict"
        assert settings.policy.delimiters == ["CONTEXT:", "USER:"]
        assert settings.policy.thresholds == {"encoding": 0.9}
        assert settings.limits.oversize == "truncate"

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROMPTGUARD_LIMITS__MAX_LENGTH", "500")
        settings = load_settings(tmp_path / "missing.toml")
        assert settings.limits.max_length == 500


class TestBuilderFromSettings:
    """Tests for builder_from_settings."""

    def test_builds_policy(self) -> None:
        settings = Settings(
            policy=PolicyConfig(
                preset="lenient",
                thresholds={"encoding": 0.4},
                actions={"roleManipulation": "sanitize"},
                delimiters=["CONTEXT:"],
            ),
            limits=LimitsConfig(max_length=100, oversize="truncate"),
        )
        policy = builder_from_settings(settings).build()
        assert isinstance(policy, Policy)
        assert policy.threshold == 0.85
        assert policy.threshold_for(ThreatCategory.ENCODING) == 0.4
        assert policy.action_for(ThreatCategory.ROLE_MANIPULATION) is Action.SANITIZE
        assert policy.delimiters == ("CONTEXT:",)
        assert policy.max_length == 100
        assert policy.oversize is OversizeMode.TRUNCATE

    def test_global_threshold(self) -> None:
        settings = Settings(policy=PolicyConfig(threshold=0.6))
        policy = builder_from_settings(settings).build()
        assert isinstance(policy, Policy)
        assert policy.threshold == 0.6

    def test_invalid_values_reported_by_build(self) -> None:
        settings = Settings(
            policy=PolicyConfig(actions={"encoding": "explode"}),
            limits=LimitsConfig(oversize="shrink"),
        )
        result = builder_from_settings(settings).build()
        assert isinstance(result, ConfigError)
        assert len(result.errors) == 2
