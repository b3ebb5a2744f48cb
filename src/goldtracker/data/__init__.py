"""Price history ingestion and source management module."""

from goldtracker.data.sources import (CSVDataSource, DataSource,
                                      StooqDataSource, YahooDataSource,
                                      normalize_series, parse_daily_csv,
                                      resolve_data_source)

__all__ = [
    "DataSource",
    "StooqDataSource",
    "YahooDataSource",
    "CSVDataSource",
    "parse_daily_csv",
    "normalize_series",
    "resolve_data_source",
]
