"""Replay settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ReplaySettings(BaseSettings):
    """Replay configuration loaded from REPLAY_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # YAML run configuration (model parameters + universe schedule)
    config_path: str = "alpha.yaml"

    # Scheduler tick cadence driving AlphaModel.update
    tick_minutes: int = 1

    log_level: str = "INFO"


_settings: ReplaySettings | None = None


def get_replay_settings(refresh: bool = False) -> ReplaySettings:
    """Get cached replay settings instance (re-read from the environment if refresh)."""
    global _settings
    if _settings is None or refresh:
        _settings = ReplaySettings()
    return _settings
