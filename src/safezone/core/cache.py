"""
On-disk JSON cache for provider lookups.

Each entry is a small JSON envelope `{"created_at_unix", "ttl_seconds", "value"}`
stored at `<base_dir>/<namespace>/<sha256(namespace:key)>.json`. Expiry is
checked on read; unreadable entries count as misses and are overwritten on the
next `set`.

Discovery passes wrap their geocoding in `record_cache_stats()` so the published
result can report how many lookups were served from disk.
"""

from __future__ import annotations

import contextvars
import json
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any, Iterator


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    expired: int = 0
    sets: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


_current_stats: contextvars.ContextVar[CacheStats | None] = contextvars.ContextVar(
    "safezone_cache_stats", default=None
)


def _count(field: str) -> None:
    stats = _current_stats.get()
    if stats is not None:
        setattr(stats, field, getattr(stats, field) + 1)


@contextmanager
def record_cache_stats() -> Iterator[CacheStats]:
    """Collect cache counters for everything run inside the block.

    Tasks created inside the block (e.g. by `asyncio.gather`) copy the context and
    therefore share the same `CacheStats` object.
    """
    stats = CacheStats()
    token = _current_stats.set(stats)
    try:
        yield stats
    finally:
        _current_stats.reset(token)


@dataclass(frozen=True)
class CacheEntry:
    created_at_unix: int
    ttl_seconds: int
    value: Any

    def is_expired(self, now: int, ttl_seconds: int | None = None) -> bool:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        return now - self.created_at_unix > ttl


class FileCache:
    """Filesystem-backed cache keyed by `(namespace, key)`."""

    def __init__(self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400):
        self.base_dir = Path(base_dir)
        self.enabled = enabled
        self.default_ttl_seconds = default_ttl_seconds

    def path_for(self, namespace: str, key: str) -> Path:
        digest = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self.base_dir / namespace / f"{digest}.json"

    def _read(self, path: Path) -> CacheEntry | None:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry(int(raw["created_at_unix"]), int(raw["ttl_seconds"]), raw["value"])
        except (OSError, ValueError, KeyError, TypeError):
            return None

    def get(self, namespace: str, key: str, ttl_seconds: int | None = None) -> Any | None:
        """Return the cached value, or None when missing, unreadable or expired.

        `ttl_seconds` overrides the TTL stored with the entry.
        """
        if not self.enabled:
            return None

        entry = self._read(self.path_for(namespace, key))
        if entry is None:
            _count("misses")
            return None
        if entry.is_expired(int(time.time()), ttl_seconds):
            _count("misses")
            _count("expired")
            return None
        _count("hits")
        return entry.value

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a JSON-serializable value (temp file + atomic rename)."""
        if not self.enabled:
            return

        path = self.path_for(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        envelope = {
            "created_at_unix": int(time.time()),
            "ttl_seconds": int(self.default_ttl_seconds if ttl_seconds is None else ttl_seconds),
            "value": value,
        }
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(envelope, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
        _count("sets")
