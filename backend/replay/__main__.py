"""CLI entry point for replaying recorded prices through an alpha model.

Usage:
    python -m replay --prices prices.csv
    python -m replay --prices prices.csv --config alpha.yaml --tick-minutes 5
    python -m replay --prices prices.csv --output alphas.json -v
"""

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from alpha_core.alpha import create_alpha_model
from alpha_core.errors import ConfigurationError
from alpha_core.subscriptions import SubscriptionManager

from replay.config import get_replay_settings
from replay.engine import ReplayEngine
from replay.report import ReportFormatter
from replay.run_config import load_run_config
from replay.source import CsvPriceSource
from replay.universe import UniverseSchedule


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay recorded prices through an alpha model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m replay --prices prices.csv
  python -m replay --prices prices.csv --config alpha.yaml --tick-minutes 5
  python -m replay --prices prices.csv --output alphas.json -v
        """,
    )
    parser.add_argument(
        "--prices",
        type=Path,
        required=True,
        help="CSV file with symbol,time,price[,end_time] rows",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML run config (default: $REPLAY_CONFIG_PATH or alpha.yaml)",
    )
    parser.add_argument(
        "--tick-minutes",
        type=int,
        default=None,
        help="Scheduler tick cadence in minutes (overrides config)",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file path for JSON results",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_replay_settings()

    # Configure logging
    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        run_config = load_run_config(args.config or Path(settings.config_path))
        settings = get_replay_settings(refresh=True)
        macd_config = run_config.macd.to_config()
    except (ConfigurationError, ValueError) as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    try:
        observations = CsvPriceSource(args.prices).read()
    except (OSError, ValueError) as e:
        print(f"Error: cannot read prices: {e}")
        return 1

    if not observations:
        print(f"Error: no observations in {args.prices}")
        return 1

    schedule = run_config.build_schedule()
    if schedule is None:
        # Static universe: every symbol in the data, from the first observation
        schedule = UniverseSchedule.static(
            observations[0].time, {o.symbol for o in observations}
        )

    tick_minutes = args.tick_minutes or run_config.tick_minutes or settings.tick_minutes

    subscriptions = SubscriptionManager()
    model = create_alpha_model(
        run_config.model, subscriptions=subscriptions, config=macd_config
    )

    try:
        engine = ReplayEngine(
            model=model,
            subscriptions=subscriptions,
            schedule=schedule,
            tick_interval=timedelta(minutes=tick_minutes),
        )
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    print(f"\nReplay: {args.prices} ({len(observations):,} observations)")
    print(f"Model: {run_config.model}, tick every {tick_minutes}m")

    result = engine.run(observations)

    ReportFormatter.print_console(result, macd_config)

    if args.output:
        ReportFormatter.save_json(result, args.output, macd_config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
