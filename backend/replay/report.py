"""Report formatting for replay results.

Outputs results to console (formatted tables) and JSON files.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from decimal import Decimal

from alpha_core.indicators import macd
from alpha_core.alpha.macd import MacdAlphaConfig

from replay.engine import ReplayResult


class ReplayEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, timedelta):
            return obj.total_seconds()
        return super().default(obj)


def indicator_snapshot(
    result: ReplayResult, config: MacdAlphaConfig
) -> dict[str, dict[str, Decimal | int]]:
    """Final MACD values per symbol, recomputed in batch from the recorded bars."""
    snapshot = {}
    for symbol, closes in sorted(result.bar_closes.items(), key=lambda kv: str(kv[0])):
        macd_line, signal_line, histogram = macd(
            closes, config.fast_period, config.slow_period, config.signal_period
        )
        snapshot[str(symbol)] = {
            "bars": len(closes),
            "macd": macd_line[-1] if closes else Decimal("NaN"),
            "signal": signal_line[-1] if closes else Decimal("NaN"),
            "histogram": histogram[-1] if closes else Decimal("NaN"),
        }
    return snapshot


class ReportFormatter:
    """Format replay results for display and export."""

    @staticmethod
    def print_console(result: ReplayResult, config: MacdAlphaConfig | None = None) -> None:
        """Print formatted report to console."""
        print("\n" + "=" * 70)
        print("  REPLAY RESULTS: MACD Alpha")
        print("=" * 70)
        if result.start_time and result.end_time:
            print(f"  Period: {result.start_time:%Y-%m-%d %H:%M} → {result.end_time:%Y-%m-%d %H:%M}")
        print(f"  Observations:   {result.observations:,}")
        print(f"  Ticks:          {result.ticks:,}")
        print(f"  Alphas:         {len(result.alphas)}")

        if result.by_direction:
            print("\n" + "-" * 70)
            print("  BY DIRECTION")
            print("-" * 70)
            for direction, count in sorted(result.by_direction.items()):
                print(f"  {direction:<12} {count:>6}")

        if result.by_symbol:
            print("\n" + "-" * 70)
            print("  BY SYMBOL")
            print("-" * 70)
            print(f"  {'Symbol':<12} {'Alphas':>6}")
            for symbol, count in sorted(result.by_symbol.items()):
                print(f"  {symbol:<12} {count:>6}")

        if config is not None and result.bar_closes:
            print("\n" + "-" * 70)
            print("  FINAL INDICATORS")
            print("-" * 70)
            print(f"  {'Symbol':<12} {'Bars':>6} {'MACD':>12} {'Signal':>12}")
            for symbol, values in indicator_snapshot(result, config).items():
                print(
                    f"  {symbol:<12} {values['bars']:>6} "
                    f"{float(values['macd']):>12.4f} {float(values['signal']):>12.4f}"
                )

        if result.universe_errors or result.universe_warnings:
            print("\n" + "-" * 70)
            print("  UNIVERSE ANOMALIES")
            print("-" * 70)
            for message in result.universe_errors:
                print(f"  ERROR    {message}")
            for message in result.universe_warnings:
                print(f"  WARNING  {message}")

        print("=" * 70 + "\n")

    @staticmethod
    def to_dict(result: ReplayResult, config: MacdAlphaConfig | None = None) -> dict:
        data = {
            "start_time": result.start_time,
            "end_time": result.end_time,
            "observations": result.observations,
            "ticks": result.ticks,
            "by_symbol": result.by_symbol,
            "by_direction": result.by_direction,
            "universe_errors": result.universe_errors,
            "universe_warnings": result.universe_warnings,
            "alphas": [
                {
                    "id": a.id,
                    "symbol": str(a.symbol),
                    "type": a.type.value,
                    "direction": a.direction.name,
                    "period": a.period,
                    "generated_time_utc": a.generated_time_utc,
                    "source_model": a.source_model,
                }
                for a in result.alphas
            ],
        }
        if config is not None:
            data["indicators"] = indicator_snapshot(result, config)
        return data

    @staticmethod
    def save_json(result: ReplayResult, path: str, config: MacdAlphaConfig | None = None) -> None:
        """Save results to JSON file."""
        with open(path, "w") as f:
            json.dump(ReportFormatter.to_dict(result, config), f, cls=ReplayEncoder, indent=2)
        print(f"Results saved to {path}")
