#!/usr/bin/env python3
"""Command-line interface for the Ichimoku signal tracker."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from goldtracker.types import TrackerConfig

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger("goldtracker")


def configure_logging(level: str = "INFO") -> None:
    """Send tracker logs to stderr at the given level."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def _load_config(args: argparse.Namespace) -> TrackerConfig | None:
    """Load configuration and set up logging; None on error."""
    from goldtracker.config import load_tracker_config
    from goldtracker.exceptions import ConfigError

    try:
        config = load_tracker_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return None
    configure_logging(config.log_level)
    return config


def cmd_run(args: argparse.Namespace) -> int:
    """Run the tracker once: fetch, evaluate, notify, publish."""
    from goldtracker.exceptions import TrackerError
    from goldtracker.tracker import build_tracker
    from goldtracker.types import RunOutcome

    config = _load_config(args)
    if config is None:
        return 1

    try:
        result = build_tracker(config).run()
    except TrackerError as e:
        logger.error(f"Error in tracker execution: {e}")
        return 1

    if result.outcome is RunOutcome.INSUFFICIENT_HISTORY:
        return 0

    print(f"{result.ticker} {result.date} ${result.price:.2f} -> {result.signal.value}")
    if result.notified:
        sent = sum(1 for ok in result.deliveries.values() if ok)
        print(f"New signal notified ({sent}/{len(result.deliveries)} delivered)")
    return 0


def cmd_indicators(args: argparse.Namespace) -> int:
    """Print the latest Ichimoku values and signal without side effects."""
    from goldtracker.data.sources import resolve_data_source
    from goldtracker.exceptions import TrackerError
    from goldtracker.indicators.ichimoku import compute_ichimoku
    from goldtracker.signals import evaluate_signal

    config = _load_config(args)
    if config is None:
        return 1

    try:
        bars = resolve_data_source(config).fetch_bars(config.ticker)
    except TrackerError as e:
        print(f"Failed to fetch data: {e}")
        return 1

    if not bars:
        print("No data fetched.")
        return 1

    latest = bars[-1]
    values = compute_ichimoku(bars, len(bars) - 1)

    print("=" * 50)
    print(f"ICHIMOKU: {config.ticker}")
    print("=" * 50)
    print(f"Bars:      {len(bars)}")
    print(f"Date:      {latest.date.isoformat()}")
    print(f"Price:     ${latest.close:.2f}")
    if values is None:
        print("Not enough history to compute the cloud.")
        return 0
    print(f"Tenkan:    {values.tenkan:.2f}")
    print(f"Kijun:     {values.kijun:.2f}")
    print(f"Senkou A:  {values.span_a:.2f}")
    print(f"Senkou B:  {values.span_b:.2f}")
    print(f"Signal:    {evaluate_signal(latest.close, values).value}")
    return 0


def cmd_signals(args: argparse.Namespace) -> int:
    """List the signals recorded in the ledger."""
    from goldtracker.exceptions import TrackerError
    from goldtracker.ledger import JsonFileLedgerStore, SignalLedger

    config = _load_config(args)
    if config is None:
        return 1

    try:
        events = SignalLedger(JsonFileLedgerStore(config.history_path)).all_events()
    except TrackerError as e:
        print(f"Failed to read signal history: {e}")
        return 1

    if not events:
        print(f"No signals recorded in {config.history_path}")
        return 0

    print(f"{'Date':<12} {'Signal':<6}")
    print("-" * 19)
    for event in events:
        print(f"{event.date.isoformat():<12} {event.type.value:<6}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Summarize the last published snapshot."""
    from goldtracker.exceptions import TrackerError
    from goldtracker.snapshot import load_snapshot

    config = _load_config(args)
    if config is None:
        return 1

    try:
        snapshot = load_snapshot(config.snapshot_path)
    except TrackerError as e:
        print(f"Failed to load snapshot: {e}")
        return 1

    print(f"Ticker:   {snapshot.ticker}")
    print(f"Date:     {snapshot.date.isoformat()}")
    print(f"Price:    ${snapshot.price:.2f}")
    print(f"Signal:   {snapshot.signal.value}")
    print(f"Tenkan:   {snapshot.ichimoku.tenkan:.2f}")
    print(f"Kijun:    {snapshot.ichimoku.kijun:.2f}")
    print(f"Senkou A: {snapshot.ichimoku.senkou_a:.2f}")
    print(f"Senkou B: {snapshot.ichimoku.senkou_b:.2f}")
    print(f"History:  {len(snapshot.history)} bars, {len(snapshot.signal_history)} signals")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Ichimoku Cloud signal tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    commands = {
        "run": (cmd_run, "Fetch data, notify new signals and publish the snapshot"),
        "indicators": (cmd_indicators, "Print the latest Ichimoku values"),
        "signals": (cmd_signals, "List recorded signals"),
        "show": (cmd_show, "Summarize the published snapshot"),
    }
    for name, (_, help_text) in commands.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "-c", "--config", default=None, help="Path to YAML configuration file"
        )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    handler, _ = commands[args.command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
