"""Single-run orchestration: fetch, compute, notify, publish.

A run either completes or aborts. Fetch and computation failures propagate
before any state is touched, so the previously published snapshot stays in
place. A new signal is notified first and recorded afterwards: a crash in
between re-sends the alert on the next run rather than losing it.
"""

from __future__ import annotations

import logging
from typing import Sequence

from goldtracker.data.sources import DataSource, resolve_data_source
from goldtracker.exceptions import InsufficientHistory, TrackerError
from goldtracker.indicators.ichimoku import compute_ichimoku
from goldtracker.ledger import JsonFileLedgerStore, SignalLedger
from goldtracker.notify import (Notifier, SmtpNotifier, deliver_alert,
                                format_alert)
from goldtracker.signals import evaluate_signal
from goldtracker.snapshot import (JsonSnapshotPublisher, SnapshotPublisher,
                                  build_snapshot)
from goldtracker.types import Bar, RunOutcome, RunResult, Signal, TrackerConfig

logger = logging.getLogger(__name__)

# Bars required before a run evaluates anything
MIN_BARS = 80


def require_history(series: Sequence[Bar], minimum: int = MIN_BARS) -> None:
    """Check that enough bars survived parsing.

    :raises InsufficientHistory: If fewer than ``minimum`` bars are available.
    """
    if len(series) < minimum:
        raise InsufficientHistory(len(series), minimum)


class SignalTracker:
    """Runs the tracker once per invocation.

    :param config: Tracker configuration.
    :param source: Price history provider.
    :param ledger: Signal deduplication ledger.
    :param notifier: Notification channel.
    :param publisher: Snapshot destination.
    """

    def __init__(
        self,
        config: TrackerConfig,
        source: DataSource,
        ledger: SignalLedger,
        notifier: Notifier,
        publisher: SnapshotPublisher,
    ) -> None:
        self.config = config
        self.source = source
        self.ledger = ledger
        self.notifier = notifier
        self.publisher = publisher

    def run(self) -> RunResult:
        """Execute one tracker run.

        :returns: Summary of the run.
        :raises DataUnavailable: If the price history cannot be fetched.
        :raises PersistenceFailure: If the ledger or snapshot cannot be written.
        """
        ticker = self.config.ticker
        logger.info(f"Checking {ticker} for Ichimoku signals...")
        series = self.source.fetch_bars(ticker)

        try:
            require_history(series)
        except InsufficientHistory as e:
            logger.info(str(e))
            return RunResult(outcome=RunOutcome.INSUFFICIENT_HISTORY, ticker=ticker)

        latest = series[-1]
        values = compute_ichimoku(series, len(series) - 1)
        if values is None:
            raise TrackerError("Failed to calculate indicators")

        logger.info(f"Latest date: {latest.date.isoformat()}")
        logger.info(
            f"Price: ${latest.close:.2f} | Tenkan: {values.tenkan:.2f} | "
            f"Kijun: {values.kijun:.2f}"
        )

        signal = evaluate_signal(latest.close, values)
        notified = False
        deliveries: dict[str, bool] = {}
        if signal is not Signal.NEUTRAL:
            if self.ledger.has_fired(signal, latest.date):
                logger.info(f"{signal.value} signal for {latest.date} already sent")
            else:
                logger.info(f"Generating a new {signal.value} signal!")
                subject, text, html_body = format_alert(signal, ticker, latest.close)
                deliveries = deliver_alert(
                    self.notifier, self.config.recipients, subject, text, html_body
                )
                self.ledger.record_fired(signal, latest.date)
                notified = True

        snapshot = build_snapshot(
            ticker, series, signal, values, self.ledger.all_events()
        )
        self.publisher.publish(snapshot)

        return RunResult(
            outcome=RunOutcome.COMPLETED,
            ticker=ticker,
            date=latest.date,
            price=latest.close,
            signal=signal,
            notified=notified,
            deliveries=deliveries,
            snapshot_path=self.publisher.path,
        )


def build_tracker(config: TrackerConfig) -> SignalTracker:
    """Wire the default collaborators for a configuration.

    :param config: Tracker configuration.
    :returns: Ready-to-run tracker.
    """
    return SignalTracker(
        config=config,
        source=resolve_data_source(config),
        ledger=SignalLedger(JsonFileLedgerStore(config.history_path)),
        notifier=SmtpNotifier(config),
        publisher=JsonSnapshotPublisher(config.snapshot_path),
    )


__all__ = ["MIN_BARS", "require_history", "SignalTracker", "build_tracker"]
