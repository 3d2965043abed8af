"""Cache distance results for a bounded time."""

import abc
import json
import logging
import math
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

from trip_footprint.elements import DistanceResult, TransportMode

LOGGER = logging.getLogger("DistanceCache")

DEFAULT_TTL = timedelta(days=7)

Clock = Callable[[], float]


def build_cache_key(origin: str, destination: str, mode: TransportMode | str) -> str:
    """Build a lowercase, whitespace collapsed key for a query, encoded as a JSON array."""
    mode_value = mode.value if isinstance(mode, TransportMode) else str(mode)

    return json.dumps([" ".join(part.lower().split()) for part in (origin, destination, mode_value)])


class DistanceCache(abc.ABC):
    """Base class for distance caches.

    Entries are stored as JSON compatible dicts holding the serialized result and the time it was
    stored. Entries older than the time-to-live and entries that cannot be parsed are evicted on read.
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Clock = time.time) -> None:
        """Initiate class."""
        self.ttl = ttl
        self.clock = clock

    @abc.abstractmethod
    def _read_entry(self, key: str) -> Any:
        """Return the raw entry stored under key, or None."""

    @abc.abstractmethod
    def _write_entry(self, key: str, entry: dict[str, Any]) -> None:
        """Store a raw entry under key."""

    @abc.abstractmethod
    def evict(self, key: str) -> None:
        """Remove the entry stored under key."""

    @abc.abstractmethod
    def keys(self) -> list[str]:
        """Return all stored keys."""

    @abc.abstractmethod
    def purge(self) -> None:
        """Remove all entries."""

    def get(self, origin: str, destination: str, mode: TransportMode | str) -> DistanceResult | None:
        """Return the cached result of a query, or None on a miss."""
        key = build_cache_key(origin, destination, mode)
        entry = self._read_entry(key)
        if entry is None:
            LOGGER.debug(f"Cache miss for '{key}'")
            return None

        try:
            stored_at = self._parse_stored_at(entry)
            result = DistanceResult.from_dict(entry["result"])
        except (KeyError, TypeError, ValueError) as error:
            LOGGER.warning(f"Evicting corrupt cache entry '{key}': {error!r}")
            self.evict(key)
            return None

        if self._is_expired(stored_at):
            LOGGER.info(f"Evicting expired cache entry '{key}'")
            self.evict(key)
            return None

        LOGGER.debug(f"Cache hit for '{key}'")
        return result

    def put(self, origin: str, destination: str, mode: TransportMode | str, result: DistanceResult) -> None:
        """Store the result of a query."""
        key = build_cache_key(origin, destination, mode)
        self._write_entry(key, {"stored_at": self.clock(), "result": result.to_dict()})

    def purge_expired(self) -> int:
        """Remove all expired or unreadable entries and return how many were removed."""
        removed = 0
        for key in self.keys():
            entry = self._read_entry(key)
            try:
                expired = self._is_expired(self._parse_stored_at(entry))
            except (KeyError, TypeError, ValueError):
                expired = True
            if expired:
                self.evict(key)
                removed += 1

        LOGGER.info(f"Purged {removed} cache entries")
        return removed

    def _parse_stored_at(self, entry: Any) -> float:
        """Return the storage time of an entry, rejecting non finite or future times."""
        stored_at = float(entry["stored_at"])
        if not math.isfinite(stored_at) or stored_at > self.clock():
            raise ValueError(f"invalid stored_at {stored_at!r}")

        return stored_at

    def _is_expired(self, stored_at: float) -> bool:
        """Check if an entry stored at `stored_at` is past its time-to-live."""
        return self.clock() - stored_at > self.ttl.total_seconds()


class InMemoryDistanceCache(DistanceCache):
    """Distance cache held in a dict."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Clock = time.time) -> None:
        """Initiate class."""
        super().__init__(ttl=ttl, clock=clock)
        self.entries: dict[str, Any] = {}

    def _read_entry(self, key: str) -> Any:
        return self.entries.get(key)

    def _write_entry(self, key: str, entry: dict[str, Any]) -> None:
        self.entries[key] = entry

    def evict(self, key: str) -> None:
        """Remove the entry stored under key."""
        self.entries.pop(key, None)

    def keys(self) -> list[str]:
        """Return all stored keys."""
        return list(self.entries)

    def purge(self) -> None:
        """Remove all entries."""
        self.entries.clear()


class JsonFileDistanceCache(DistanceCache):
    """Distance cache persisted in a JSON file."""

    def __init__(self, path: Path, ttl: timedelta = DEFAULT_TTL, clock: Clock = time.time) -> None:
        """Initiate class."""
        super().__init__(ttl=ttl, clock=clock)
        self.path = Path(path)

        LOGGER.info(f"JsonFileDistanceCache initiated at {self.path}")

    def _load(self) -> dict[str, Any]:
        """Load all entries, treating an unreadable file as empty."""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as handle:
                entries = json.load(handle)
        except (OSError, json.JSONDecodeError) as error:
            LOGGER.warning(f"Ignoring unreadable cache file {self.path}: {error!r}")
            return {}

        if not isinstance(entries, dict):
            LOGGER.warning(f"Ignoring cache file {self.path} without a top level mapping")
            return {}

        return entries

    def _save(self, entries: dict[str, Any]) -> None:
        """Write all entries."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(entries, handle, indent=2)

    def _read_entry(self, key: str) -> Any:
        return self._load().get(key)

    def _write_entry(self, key: str, entry: dict[str, Any]) -> None:
        entries = self._load()
        entries[key] = entry
        self._save(entries)

    def evict(self, key: str) -> None:
        """Remove the entry stored under key."""
        entries = self._load()
        if key in entries:
            del entries[key]
            self._save(entries)

    def keys(self) -> list[str]:
        """Return all stored keys."""
        return list(self._load())

    def purge(self) -> None:
        """Remove all entries."""
        self._save({})
