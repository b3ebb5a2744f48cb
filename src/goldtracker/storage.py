"""File helpers shared by the ledger and the snapshot publisher."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from goldtracker.exceptions import PersistenceFailure


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` without exposing a partial file.

    The content goes to a temporary file in the same directory, which is then
    renamed over the target.

    :param path: Destination file; parent directories are created.
    :param text: Full file content.
    :raises PersistenceFailure: If the file cannot be written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise PersistenceFailure(f"Failed to write {path}: {e}") from e


def read_json(path: Path, default: Any = None) -> Any:
    """Load a JSON document, returning ``default`` when the file is absent.

    :param path: File to read.
    :param default: Value returned if the file does not exist.
    :returns: Parsed JSON content.
    :raises PersistenceFailure: If the file cannot be read or parsed.
    """
    path = Path(path)
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        raise PersistenceFailure(f"Failed to read {path}: {e}") from e


__all__ = ["atomic_write_text", "read_json"]
