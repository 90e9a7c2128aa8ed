"""Configuration management using pydantic-settings."""

import tomllib
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.builder import ALL, DEFAULT_DELIMITERS, DEFAULT_MAX_LENGTH, PolicyBuilder

DEFAULT_PRESET = "moderate"
CONFIG_PATH = Path("~/.config/promptguard/config.toml").expanduser()


def parse_delimiters(value: str) -> list[str]:
    """Split a comma-separated delimiter list, dropping blanks."""
    return [token.strip() for token in value.split(",") if token.strip()]


class PolicyConfig(BaseSettings):
    """Preset and per-category overrides."""

    preset: str = DEFAULT_PRESET
    threshold: float | None = None
    thresholds: dict[str, float] = {}
    actions: dict[str, str] = {}
    delimiters: list[str] = list(DEFAULT_DELIMITERS)

    @field_validator("delimiters", mode="before")
    @classmethod
    def split_delimiters(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return parse_delimiters(v)
        return v


class LimitsConfig(BaseSettings):
    max_length: int = DEFAULT_MAX_LENGTH
    oversize: str = "reject"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PROMPTGUARD_", env_nested_delimiter="__")

    policy: PolicyConfig = PolicyConfig()
    limits: LimitsConfig = LimitsConfig()


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from TOML file, falling back to defaults."""
    path = config_path or CONFIG_PATH

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)

        policy = PolicyConfig(**data.get("policy", {}))
        limits = LimitsConfig(**data.get("limits", {}))
        return Settings(policy=policy, limits=limits)

    return Settings()


def builder_from_settings(settings: Settings) -> PolicyBuilder:
    """Translate settings into a builder; values are checked by ``build()``."""
    builder = PolicyBuilder.from_preset(settings.policy.preset)
    if settings.policy.threshold is not None:
        builder = builder.with_threshold(ALL, settings.policy.threshold)
    for category, value in settings.policy.thresholds.items():
        builder = builder.with_threshold(category, value)
    for category, action in settings.policy.actions.items():
        builder = builder.with_action(category, action)
    return (
        builder.with_delimiters(settings.policy.delimiters)
        .with_max_length(settings.limits.max_length)
        .with_oversize(settings.limits.oversize)
    )
