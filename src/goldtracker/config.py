"""Configuration loading for the tracker.

Settings come from three layers, later ones winning: built-in defaults, an
optional YAML file, and environment variables (a ``.env`` file in the working
directory is loaded into the environment first).

Example config file (tracker.yaml):

    ticker: "GLD"
    recipients:
      - "alice@example.com"
      - "bob@example.com"
    smtp:
      host: "smtp.gmail.com"
      port: 587
      user: "tracker@example.com"
      password: "app-password"
      sender_name: "Gold Tracker"
      timeout: 30
    history_path: "alert-history.json"
    snapshot_path: "website/public/data.json"
    data_source: "stooq"
    source_params: {}
    fetch_timeout: 30
    log_level: "INFO"

Environment variables: TICKER, RECIPIENT_EMAIL (comma-separated), SMTP_HOST,
SMTP_PORT, SMTP_USER, SMTP_PASS, SENDER_NAME, SMTP_TIMEOUT, HISTORY_PATH,
SNAPSHOT_PATH, DATA_SOURCE, FETCH_TIMEOUT, LOG_LEVEL.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from goldtracker.exceptions import ConfigError
from goldtracker.notify import parse_recipients
from goldtracker.types import Symbol, TrackerConfig

# Valid price providers
VALID_DATA_SOURCES = frozenset(["stooq", "yahoo", "csv"])

# Valid log levels
VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

# Environment variable -> TrackerConfig field
ENV_VARS = {
    "TICKER": "ticker",
    "RECIPIENT_EMAIL": "recipients",
    "SMTP_HOST": "smtp_host",
    "SMTP_PORT": "smtp_port",
    "SMTP_USER": "smtp_user",
    "SMTP_PASS": "smtp_password",
    "SENDER_NAME": "sender_name",
    "SMTP_TIMEOUT": "smtp_timeout",
    "HISTORY_PATH": "history_path",
    "SNAPSHOT_PATH": "snapshot_path",
    "DATA_SOURCE": "data_source",
    "FETCH_TIMEOUT": "fetch_timeout",
    "LOG_LEVEL": "log_level",
}

# YAML "smtp" mapping key -> TrackerConfig field
SMTP_KEYS = {
    "host": "smtp_host",
    "port": "smtp_port",
    "user": "smtp_user",
    "password": "smtp_password",
    "sender_name": "sender_name",
    "timeout": "smtp_timeout",
}

TOP_LEVEL_KEYS = frozenset([
    "ticker", "recipients", "history_path", "snapshot_path",
    "data_source", "source_params", "fetch_timeout", "log_level",
])


def _read_yaml(config_path: str | Path) -> dict[str, Any]:
    """Read a YAML configuration file into tracker field names.

    :param config_path: Path to YAML configuration file.
    :returns: Values keyed by TrackerConfig field.
    :raises ConfigError: If the file cannot be read or has an invalid shape.
    """
    config_path = Path(config_path)
    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    values: dict[str, Any] = {}
    for key, value in raw_config.items():
        if key == "smtp":
            if not isinstance(value, dict):
                raise ConfigError("'smtp' must be a mapping")
            for smtp_key, smtp_value in value.items():
                if smtp_key not in SMTP_KEYS:
                    raise ConfigError(f"Unknown smtp setting: {smtp_key}")
                values[SMTP_KEYS[smtp_key]] = smtp_value
        elif key in TOP_LEVEL_KEYS:
            values[key] = value
        else:
            raise ConfigError(f"Unknown configuration key: {key}")

    if "source_params" in values and not isinstance(values["source_params"], dict):
        raise ConfigError("'source_params' must be a mapping")
    return values


def _read_env(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect tracker settings present in the environment."""
    return {
        field: environ[name]
        for name, field in ENV_VARS.items()
        if environ.get(name, "").strip()
    }


def _validate(values: dict[str, Any]) -> dict[str, Any]:
    """Normalize and check individual settings.

    :raises ConfigError: If a setting has an invalid value.
    """
    if "ticker" in values:
        ticker = str(values["ticker"]).strip().upper()
        if not ticker:
            raise ConfigError("'ticker' must not be empty")
        values["ticker"] = Symbol(ticker)

    if "recipients" in values:
        recipients = values["recipients"]
        if recipients is not None and not isinstance(recipients, (str, list)):
            raise ConfigError("'recipients' must be a string or a list of strings")
        if isinstance(recipients, list) and not all(
            isinstance(item, str) for item in recipients
        ):
            raise ConfigError(f"Invalid recipients: {recipients}")
        values["recipients"] = parse_recipients(recipients)

    if "smtp_port" in values:
        try:
            port = int(values["smtp_port"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid SMTP port: {values['smtp_port']}") from e
        if not 0 < port < 65536:
            raise ConfigError(f"SMTP port out of range: {port}")
        values["smtp_port"] = port

    for key in ("fetch_timeout", "smtp_timeout"):
        if key not in values:
            continue
        try:
            timeout = float(values[key])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid {key}: {values[key]}") from e
        if timeout <= 0:
            raise ConfigError(f"'{key}' must be positive")
        values[key] = timeout

    if "data_source" in values:
        data_source = str(values["data_source"]).strip().lower()
        if data_source not in VALID_DATA_SOURCES:
            raise ConfigError(
                f"Invalid data_source '{values['data_source']}'. "
                f"Valid options: {sorted(VALID_DATA_SOURCES)}"
            )
        values["data_source"] = data_source

    if "log_level" in values:
        log_level = str(values["log_level"]).strip().upper()
        if log_level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level '{values['log_level']}'. "
                f"Valid options: {sorted(VALID_LOG_LEVELS)}"
            )
        values["log_level"] = log_level

    return values


def load_tracker_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> TrackerConfig:
    """Build the tracker configuration from YAML and the environment.

    :param config_path: Optional YAML configuration file.
    :param environ: Environment to read; defaults to ``os.environ`` after
        loading a ``.env`` file.
    :returns: Validated TrackerConfig object.
    :raises ConfigError: If any setting is invalid.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    values: dict[str, Any] = {}
    if config_path is not None:
        values.update(_read_yaml(config_path))
    values.update(_read_env(environ))

    try:
        return TrackerConfig(**_validate(values))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


__all__ = [
    "VALID_DATA_SOURCES",
    "VALID_LOG_LEVELS",
    "ENV_VARS",
    "load_tracker_config",
]
