"""Small in-process TTL cache for AI results."""

import time
from typing import Any


class ResponseCache:
    """Map with per-entry expiry; the oldest entry goes when full."""

    def __init__(self, max_age: float = 3600.0, max_size: int = 100):
        self.max_age = max_age
        self.max_size = max_size
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if time.monotonic() - stored_at > self.max_age:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        if key not in self._entries and len(self._entries) >= self.max_size:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (value, time.monotonic())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
