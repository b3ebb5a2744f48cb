"""Data source implementations for fetching daily price history.

This module provides an abstract interface for price providers and concrete
implementations for Stooq (HTTP CSV), Yahoo Finance, and local CSV files.
Every source returns a date-ascending list of validated bars.
"""

from __future__ import annotations

import csv
import datetime as dt
import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

import requests

from goldtracker.exceptions import ConfigError, DataUnavailable
from goldtracker.types import Bar, Symbol

if TYPE_CHECKING:
    from goldtracker.types import TrackerConfig

logger = logging.getLogger(__name__)

# Columns every provider table must carry (matched case-insensitively)
REQUIRED_COLUMNS = ("date", "open", "high", "low", "close")


def _parse_date(value: str | None) -> dt.date | None:
    """Parse a date or datetime string into a calendar date.

    :param value: ``YYYY-MM-DD`` or an ISO datetime string.
    :returns: The calendar date, or None if the value cannot be parsed.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _log_dropped(dropped: int, total: int, origin: str) -> None:
    if dropped:
        # Dropping rows shifts which sessions fall inside the rolling windows
        logger.warning(
            f"Dropped {dropped} of {total} malformed rows from {origin}; "
            "indicator windows may span different sessions"
        )


def parse_daily_csv(text: str, origin: str = "provider") -> list[Bar]:
    """Parse a delimited daily OHLC table into bars.

    The header must contain Date, Open, High, Low and Close columns (any
    case); extra columns are ignored. Rows with an unparseable date or a
    non-finite price are dropped. Source ordering is preserved.

    :param text: Raw CSV text.
    :param origin: Label used in log and error messages.
    :returns: Parsed bars in source order.
    :raises DataUnavailable: If the table lacks the required columns.
    """
    reader = csv.DictReader(io.StringIO(text.strip()))
    columns = {name.strip().lower(): name for name in (reader.fieldnames or [])}
    missing = [col for col in REQUIRED_COLUMNS if col not in columns]
    if missing:
        raise DataUnavailable(
            f"Unexpected response format from {origin}: "
            f"missing columns {missing}"
        )

    bars: list[Bar] = []
    total = 0
    try:
        for row in reader:
            total += 1
            day = _parse_date(row.get(columns["date"]))
            if day is None:
                continue
            try:
                bars.append(
                    Bar(
                        date=day,
                        open=float(row[columns["open"]]),
                        high=float(row[columns["high"]]),
                        low=float(row[columns["low"]]),
                        close=float(row[columns["close"]]),
                    )
                )
            except (TypeError, ValueError):
                # Non-numeric or non-finite price
                continue
    except csv.Error as e:
        raise DataUnavailable(f"CSV parsing error from {origin}: {e}") from e

    _log_dropped(total - len(bars), total, origin)
    return bars


def normalize_series(bars: list[Bar]) -> list[Bar]:
    """Return bars in ascending date order.

    Newest-first input is reversed. Duplicate dates are passed through
    untouched; any other ordering is rejected because the indicator windows
    depend on it.

    :param bars: Bars in provider order.
    :returns: Bars in ascending date order.
    :raises DataUnavailable: If the bars are neither ascending nor descending.
    """
    if len(bars) > 1 and bars[0].date > bars[-1].date:
        bars = list(reversed(bars))
    for previous, current in zip(bars, bars[1:]):
        if current.date < previous.date:
            raise DataUnavailable(
                f"Price series is out of order: {current.date} follows {previous.date}"
            )
    return bars


class DataSource(ABC):
    """Abstract base class for daily price providers.

    All data source implementations must inherit from this class and implement
    the `fetch_bars` method.
    """

    @abstractmethod
    def fetch_bars(self, ticker: Symbol) -> list[Bar]:
        """Fetch the daily bar history for a ticker.

        :param ticker: Symbol to fetch.
        :returns: Bars in ascending date order.
        :raises DataUnavailable: If fetching or parsing fails.
        """
        ...


class StooqDataSource(DataSource):
    """Data source that downloads daily CSV history from Stooq.

    :param source_params: Optional parameters for configuring the source.
        - timeout: Request timeout in seconds (default: 30)
        - base_url: Download endpoint (default: Stooq's CSV endpoint)
    """

    BASE_URL = "https://stooq.com/q/d/l/"

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        self.params = source_params or {}
        self.timeout = self.params.get("timeout", 30)
        self.base_url = self.params.get("base_url", self.BASE_URL)

    @staticmethod
    def stooq_symbol(ticker: Symbol | str) -> str:
        """Map a ticker to Stooq's symbol (US listings carry a ``.us`` suffix)."""
        symbol = str(ticker).strip().lower()
        return symbol if "." in symbol else f"{symbol}.us"

    def fetch_bars(self, ticker: Symbol) -> list[Bar]:
        """Download and parse the daily history from Stooq.

        :param ticker: Symbol to fetch.
        :returns: Bars in ascending date order.
        :raises DataUnavailable: On transport errors, timeouts or non-2xx responses.
        """
        symbol = self.stooq_symbol(ticker)
        logger.info(f"Fetching data from Stooq for {symbol}...")

        try:
            response = requests.get(
                self.base_url,
                params={"s": symbol, "i": "d"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DataUnavailable(f"Stooq fetch failed for '{symbol}': {e}") from e

        if not 200 <= response.status_code < 300:
            raise DataUnavailable(
                f"Stooq fetch failed for '{symbol}': "
                f"{response.status_code} {response.reason}"
            )

        return normalize_series(parse_daily_csv(response.text, origin="Stooq"))


class YahooDataSource(DataSource):
    """Data source that fetches daily history from Yahoo Finance via yfinance.

    :param source_params: Optional parameters for configuring the source.
        - timeout: Request timeout in seconds (default: 30)
        - period: History length requested (default: "1y")
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        self.params = source_params or {}
        self.timeout = self.params.get("timeout", 30)
        self.period = self.params.get("period", "1y")

    def fetch_bars(self, ticker: Symbol) -> list[Bar]:
        """Fetch daily bars from Yahoo Finance.

        :param ticker: Symbol to fetch.
        :returns: Bars in ascending date order.
        :raises DataUnavailable: If fetching fails or no data comes back.
        """
        try:
            import yfinance as yf
        except ImportError as e:
            raise DataUnavailable(
                "yfinance is not installed. Install it with: pip install yfinance"
            ) from e

        logger.info(f"Fetching data from Yahoo Finance for {ticker}...")
        try:
            df = yf.Ticker(str(ticker)).history(
                period=self.period,
                interval="1d",
                timeout=self.timeout,
            )
        except Exception as e:
            raise DataUnavailable(
                f"Failed to fetch data for symbol '{ticker}': {e}"
            ) from e

        if df.empty:
            raise DataUnavailable(f"No data returned for symbol '{ticker}'")

        bars: list[Bar] = []
        for timestamp, row in df.iterrows():
            try:
                bars.append(
                    Bar(
                        date=timestamp.date(),
                        open=float(row["Open"]),
                        high=float(row["High"]),
                        low=float(row["Low"]),
                        close=float(row["Close"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue

        _log_dropped(len(df) - len(bars), len(df), "Yahoo Finance")
        return normalize_series(bars)


class CSVDataSource(DataSource):
    """Data source that reads daily history from a local CSV file.

    The file uses the same layout as the Stooq download (Date, Open, High,
    Low, Close, optional extra columns).

    :param source_params: Required parameters:
        - file_path: Path to the CSV file.
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize CSV data source.

        :param source_params: Configuration with file_path.
        :raises ConfigError: If file_path is not provided.
        """
        self.params = source_params or {}
        self.file_path = self.params.get("file_path")
        if not self.file_path:
            raise ConfigError("CSVDataSource requires 'file_path' in source_params")

    def fetch_bars(self, ticker: Symbol) -> list[Bar]:
        """Read bars from the CSV file; the ticker is only used for logging.

        :param ticker: Symbol the file holds.
        :returns: Bars in ascending date order.
        :raises DataUnavailable: If the file cannot be read or parsed.
        """
        path = Path(self.file_path)
        logger.info(f"Reading {ticker} history from {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise DataUnavailable(f"Failed to read CSV file: {e}") from e

        return normalize_series(parse_daily_csv(text, origin=str(path)))


SOURCES: dict[str, type[DataSource]] = {
    "stooq": StooqDataSource,
    "yahoo": YahooDataSource,
    "csv": CSVDataSource,
}


def resolve_data_source(config: TrackerConfig) -> DataSource:
    """Construct a data source from configuration.

    :param config: TrackerConfig with data_source and source_params.
    :returns: DataSource instance for the specified type.
    :raises ConfigError: If data_source type is unrecognized.
    """
    source_type = config.data_source.lower()
    source_class = SOURCES.get(source_type)
    if source_class is None:
        raise ConfigError(
            f"Unrecognized data source type: '{config.data_source}'. "
            f"Supported types: {', '.join(SOURCES)}"
        )
    params = {"timeout": config.fetch_timeout, **config.source_params}
    return source_class(params)
