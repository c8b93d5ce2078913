"""Price observation sources for replay.

CSV layout (header required, ``end_time`` optional):

    symbol,time,price,end_time
    SPY,2013-10-07T09:31:00+00:00,144.15,
    SPY,1381138320,144.20,

Timestamps are ISO-8601 (naive values are taken as UTC) or Unix seconds.
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Protocol

from alpha_core.models import PriceObservation, Symbol

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("symbol", "time", "price")


class PriceSource(Protocol):
    """Protocol for observation access."""

    def read(self) -> list[PriceObservation]: ...


def parse_time(value: str) -> datetime:
    """Parse an ISO-8601 or Unix-seconds timestamp to an aware UTC datetime."""
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        seconds = None

    if seconds is not None:
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise ValueError(f"timestamp out of range: {value}") from e

    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class CsvPriceSource:
    """Read observations from a CSV file, returned in time order."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> list[PriceObservation]:
        observations: list[PriceObservation] = []
        symbols: dict[str, Symbol] = {}

        with open(self.path, newline="") as f:
            reader = csv.DictReader(f)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"{self.path}: missing columns {', '.join(missing)}")

            for line_no, row in enumerate(reader, start=2):
                try:
                    ticker = row["symbol"].strip()
                    symbol = symbols.get(ticker)
                    if symbol is None:
                        symbol = symbols[ticker] = Symbol.create(ticker)
                    end_time = (row.get("end_time") or "").strip()
                    observations.append(
                        PriceObservation(
                            symbol=symbol,
                            time=parse_time(row["time"]),
                            price=Decimal(row["price"].strip()),
                            end_time=parse_time(end_time) if end_time else None,
                        )
                    )
                except (ValueError, InvalidOperation) as e:
                    raise ValueError(f"{self.path}:{line_no}: invalid row: {e}") from e

        observations.sort(key=lambda o: o.time)
        logger.info(
            f"Loaded {len(observations):,} observations for {len(symbols)} symbols "
            f"from {self.path}"
        )
        return observations
