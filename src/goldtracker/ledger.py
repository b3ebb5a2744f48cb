"""Signal deduplication ledger.

The ledger remembers which ``(signal, day)`` pairs already triggered a
notification. Entries are only ever added. Storage sits behind the
:class:`LedgerStore` port so the ledger can live in a JSON file, in memory,
or in any other durable key-value store.

Keys look like ``BUY-2024-01-15``: the signal type, a dash, then the ISO date.
Parsing splits at the first dash only, so the dashes inside the date survive.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from goldtracker.exceptions import PersistenceFailure
from goldtracker.storage import atomic_write_text, read_json
from goldtracker.types import Signal, SignalEvent

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "-"


def ledger_key(signal: Signal, day: dt.date) -> str:
    """Build the composite key for a fired signal.

    :param signal: BUY or SELL.
    :param day: Day the signal fired.
    :returns: Key such as ``"SELL-2024-03-01"``.
    :raises ValueError: If the signal is NEUTRAL.
    """
    if signal is Signal.NEUTRAL:
        raise ValueError("NEUTRAL signals are never recorded")
    return f"{signal.value}{KEY_SEPARATOR}{day.isoformat()}"


def parse_ledger_key(key: str) -> SignalEvent:
    """Recover the signal event encoded in a ledger key.

    :param key: Key produced by :func:`ledger_key`.
    :returns: The event.
    :raises ValueError: If the key is malformed.
    """
    kind, sep, day = key.partition(KEY_SEPARATOR)
    if not sep:
        raise ValueError(f"ledger key without separator: {key!r}")
    return SignalEvent(type=Signal(kind), date=dt.date.fromisoformat(day))


class LedgerStore(ABC):
    """Durable set of ledger keys."""

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Return True if the key has been inserted."""
        ...

    @abstractmethod
    def insert(self, key: str) -> None:
        """Insert a key; inserting an existing key is a no-op."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """Return every stored key."""
        ...


class InMemoryLedgerStore(LedgerStore):
    """Ledger store kept in process memory (tests, dry runs)."""

    def __init__(self, keys: Iterable[str] | None = None) -> None:
        self._keys: dict[str, bool] = {key: True for key in keys or []}

    def contains(self, key: str) -> bool:
        return key in self._keys

    def insert(self, key: str) -> None:
        self._keys[key] = True

    def keys(self) -> list[str]:
        return list(self._keys)


class JsonFileLedgerStore(LedgerStore):
    """Ledger store backed by a JSON object of ``key -> true``.

    The file is read once, on first access, and rewritten fully and
    atomically when a new key is inserted. A missing file is an empty ledger.
    One instance serves one run; later changes made by other processes are
    not picked up.

    :param path: Location of the ledger file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._entries: dict[str, bool] | None = None

    def _load(self) -> dict[str, bool]:
        if self._entries is None:
            data = read_json(self.path, default={})
            if not isinstance(data, dict):
                raise PersistenceFailure(
                    f"Ledger file {self.path} must contain a JSON object"
                )
            self._entries = {str(key): bool(value) for key, value in data.items()}
        return self._entries

    def contains(self, key: str) -> bool:
        return self._load().get(key, False)

    def insert(self, key: str) -> None:
        entries = self._load()
        if entries.get(key):
            return
        updated = {**entries, key: True}
        atomic_write_text(self.path, json.dumps(updated))
        self._entries = updated

    def keys(self) -> list[str]:
        return [key for key, fired in self._load().items() if fired]


class SignalLedger:
    """Records which signals have already been notified, one per day.

    :param store: Persistence backend for ledger keys.
    """

    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    def has_fired(self, signal: Signal, day: dt.date) -> bool:
        """Return True if ``signal`` already fired on ``day``.

        NEUTRAL never consults the store and is never considered fired.
        """
        if signal is Signal.NEUTRAL:
            return False
        return self.store.contains(ledger_key(signal, day))

    def record_fired(self, signal: Signal, day: dt.date) -> None:
        """Record that ``signal`` fired on ``day``; repeated calls are no-ops.

        :raises ValueError: If the signal is NEUTRAL.
        """
        self.store.insert(ledger_key(signal, day))

    def all_events(self) -> list[SignalEvent]:
        """Return every recorded event, ordered by date then type.

        Keys that cannot be parsed are skipped with a warning.
        """
        events: set[SignalEvent] = set()
        for key in self.store.keys():
            try:
                events.add(parse_ledger_key(key))
            except ValueError as e:
                logger.warning(f"Skipping malformed ledger key {key!r}: {e}")
        return sorted(events, key=lambda event: (event.date, event.type.value))


__all__ = [
    "KEY_SEPARATOR",
    "ledger_key",
    "parse_ledger_key",
    "LedgerStore",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    "SignalLedger",
]
