"""
File-backed key/value store.

All keys live in one JSON document, namespaced with a prefix, the way the
web client namespaces its browser storage. Read failures return the caller's
fallback; write failures are logged and swallowed.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from mneme.domain.constants import STORAGE_PREFIX
from mneme.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


def _same_kind(value: Any, fallback: Any) -> bool:
    # JSON has a single number type; bool is not a number here.
    if isinstance(fallback, bool) or isinstance(value, bool):
        return isinstance(value, bool) and isinstance(fallback, bool)
    if isinstance(fallback, (int, float)):
        return isinstance(value, (int, float))
    return isinstance(value, type(fallback))


def decode_value(value: Any, fallback: Any) -> Any:
    """Return `value` unless a typed fallback was given and the types disagree."""
    if fallback is not None and not _same_kind(value, fallback):
        return fallback
    return value


class JsonFileStore(KeyValueStore):
    """Key/value store persisted to a single JSON file."""

    def __init__(self, path: Path, prefix: str = STORAGE_PREFIX):
        self.path = Path(path)
        self.prefix = prefix

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file {self.path}: not a JSON object")
            return {}
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        try:
            text = json.dumps(data, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            logger.warning(f"Could not write storage file {self.path}: {e}")
            return

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=self.path.parent, text=True
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.warning(f"Could not write storage file {self.path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def get(self, key: str, fallback: Any = None) -> Any:
        data = self._read_all()
        namespaced = self.prefix + key
        if namespaced not in data:
            return fallback
        return decode_value(data[namespaced], fallback)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[self.prefix + key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        namespaced = self.prefix + key
        if namespaced in data:
            del data[namespaced]
            self._write_all(data)
