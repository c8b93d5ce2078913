"""Replay run configuration loaded from a YAML file.

Example ``alpha.yaml``:

    model: macd
    tick_minutes: 1
    macd:
      consolidator_minutes: 10
      alpha_minutes: 30
      bounce_threshold_percent: 0.01
    universe:
      - time: 2013-10-07T09:30:00Z
        symbols: [SPY, AAPL]
      - time: 2013-10-08T09:30:00Z
        symbols: [SPY]

No YAML file = MACD defaults with a static universe of every symbol in the
price data.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator, model_validator

from alpha_core.alpha import list_alpha_models
from alpha_core.alpha.macd import MacdAlphaConfig
from alpha_core.models import Symbol

from replay.universe import UniverseSchedule

logger = logging.getLogger(__name__)


class MacdSection(BaseModel):
    """MACD parameters with durations expressed in minutes."""

    consolidator_minutes: float = 10
    alpha_minutes: float = 30
    bounce_threshold_percent: Decimal = Decimal("0.01")
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9

    def to_config(self) -> MacdAlphaConfig:
        return MacdAlphaConfig(
            consolidator_period=timedelta(minutes=self.consolidator_minutes),
            alpha_period=timedelta(minutes=self.alpha_minutes),
            bounce_threshold_percent=self.bounce_threshold_percent,
            fast_period=self.fast_period,
            slow_period=self.slow_period,
            signal_period=self.signal_period,
        )


class UniverseEntry(BaseModel):
    """Full universe membership effective from ``time``."""

    time: datetime
    symbols: list[str] = []

    @field_validator("time")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class RunConfig(BaseModel):
    """Top-level alpha.yaml configuration."""

    model: str = "macd"
    tick_minutes: int | None = None
    macd: MacdSection = MacdSection()
    universe: list[UniverseEntry] = []

    @model_validator(mode="after")
    def _validate(self):
        available = list_alpha_models()
        if self.model not in available:
            raise ValueError(f"model must be one of {available}, got '{self.model}'")
        if self.tick_minutes is not None and self.tick_minutes <= 0:
            raise ValueError(f"tick_minutes must be positive, got {self.tick_minutes}")
        return self

    def build_schedule(self) -> UniverseSchedule | None:
        """Universe schedule from the YAML entries, or None if none were given."""
        if not self.universe:
            return None
        return UniverseSchedule(
            (entry.time, [Symbol.create(s) for s in entry.symbols])
            for entry in self.universe
        )


def load_run_config(path: Path | None = None) -> RunConfig:
    """Load run config from YAML file.

    Falls back to defaults if the file doesn't exist.
    """
    config_path = Path(path or "alpha.yaml")

    # Load .env next to the YAML so REPLAY_* overrides apply
    load_dotenv(config_path.parent / ".env", override=False)

    if not config_path.exists():
        logger.info("No run config found at %s, using defaults", config_path)
        return RunConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = RunConfig(**raw)
    logger.info(
        "Loaded run config: model=%s, %d universe snapshots",
        config.model,
        len(config.universe),
    )
    return config
