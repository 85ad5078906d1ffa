import json
from typing import Any

from mneme.domain.ports import KeyValueStore

from .json_file import decode_value


class MemoryStore(KeyValueStore):
    """
    In-process store.

    Values are kept as JSON text so callers see the same round-trip
    behaviour as on disk (tuples come back as lists, and so on).
    """

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str, fallback: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return fallback
        return decode_value(json.loads(raw), fallback)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data
