"""Expiring key-value store with a memory layer over a disk layer.

:class:`ExpiringStore` maps string keys to encoded payloads plus an expiry.
The disk layer is a :class:`diskcache.Cache` directory so entries survive
process restarts; a plain dict in front of it serves repeat reads without
touching SQLite.

Expiry is evaluated by the store itself against an injectable clock rather
than delegated to diskcache, so tests can move time forward deterministically.
An entry is valid while ``clock() < stored_at + ttl``. Expired entries are
reported as absent but stay on disk until they are overwritten by the next
successful write, removed by :meth:`~ExpiringStore.invalidate`, or swept by
:meth:`~ExpiringStore.prune`.

Read failures never propagate: an unreadable disk layer, a corrupted payload,
or a payload written by an incompatible version all read as a miss so callers
fall back to a fresh fetch.

See Also:
    :class:`~coinboard.cache.codec.Codec` -- the typed adapters passed to
    :meth:`~ExpiringStore.put` and :meth:`~ExpiringStore.get`.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import diskcache

from coinboard.cache.codec import Codec
from coinboard.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]

_DISK_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


@dataclass(frozen=True)
class CacheEntry:
    """A single stored payload and its freshness window.

    Attributes:
        key: The cache key the entry was written under.
        payload: Encoded value bytes produced by a :class:`Codec`.
        stored_at: Epoch seconds at write time.
        ttl: Lifetime in seconds.
    """

    key: str
    payload: bytes
    stored_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl

    def is_valid(self, now: float) -> bool:
        """Return ``True`` while *now* is strictly before the expiry instant."""
        return now < self.expires_at

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Any) -> CacheEntry:
        """Rebuild an entry from its on-disk record.

        Raises:
            ValueError: If *record* does not have the expected layout.
        """
        if not isinstance(record, dict):
            raise ValueError(f"unexpected record type {type(record).__name__}")
        try:
            return cls(
                key=str(record["key"]),
                payload=bytes(record["payload"]),
                stored_at=float(record["stored_at"]),
                ttl=float(record["ttl"]),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed cache record: {exc}") from exc


class ExpiringStore:
    """Durable, TTL-aware mapping from string key to a typed value.

    Args:
        directory: Directory for the diskcache database. ``None`` keeps the
            store memory-only; nothing is persisted.
        clock: Returns the current time in epoch seconds. Defaults to
            :func:`time.time`.

    Example::

        from coinboard.cache import ExpiringStore, JSON_CODEC

        with ExpiringStore("/tmp/coinboard-cache") as store:
            store.put("greeting", {"hello": "world"}, ttl=60, codec=JSON_CODEC)
            store.get("greeting", JSON_CODEC)   # {'hello': 'world'}
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._clock = clock
        self._directory = Path(directory) if directory is not None else None
        self._memory: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._disk: Optional[diskcache.Cache] = None
        if self._directory is not None:
            self._disk = diskcache.Cache(str(self._directory))

    def __enter__(self) -> ExpiringStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    @property
    def persistent(self) -> bool:
        """Whether entries are written to disk."""
        return self._disk is not None

    # ------------------------------------------------------------------ #
    # Core operations
    # ------------------------------------------------------------------ #

    def put(self, key: str, value: T, ttl: float, codec: Codec[T]) -> None:
        """Encode *value* and store it under *key* for *ttl* seconds.

        Overwrites any existing entry for *key*. Nothing is written if
        encoding fails.

        Args:
            key: Cache key.
            value: The value to store.
            ttl: Lifetime in seconds. ``0`` stores an entry that is already
                expired.
            codec: Adapter used to serialise *value*.

        Raises:
            EncodingError: If *codec* cannot serialise *value*.
            StorageError: If the disk layer rejects the write.
        """
        payload = codec.encode(value)
        entry = CacheEntry(key=key, payload=payload, stored_at=self._clock(), ttl=float(ttl))

        with self._lock:
            if self._disk is not None:
                try:
                    self._disk.set(key, entry.to_record())
                except _DISK_ERRORS as exc:
                    raise StorageError(f"Cannot write cache entry {key!r}: {exc}") from exc
            self._memory[key] = entry
        logger.debug("Cache SET: %s (%d bytes, TTL=%ss)", key, len(payload), ttl)

    def get(self, key: str, codec: Codec[T]) -> Optional[T]:
        """Return the decoded value for *key*, or ``None`` on a miss.

        A miss is any of: no entry, an expired entry, an entry whose payload
        *codec* cannot decode, or a disk layer that cannot be read.

        Args:
            key: Cache key.
            codec: Adapter used to decode the stored payload.

        Returns:
            The decoded value, or ``None``.
        """
        entry = self._lookup(key)
        if entry is None:
            logger.debug("Cache MISS: %s", key)
            return None

        if not entry.is_valid(self._clock()):
            logger.debug("Cache EXPIRED: %s", key)
            return None

        try:
            value = codec.decode(entry.payload)
        except ValueError as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", key, exc)
            return None

        logger.debug("Cache HIT: %s", key)
        return value

    def invalidate(self, key: str) -> None:
        """Remove the entry for *key* if present; no-op otherwise.

        Raises:
            StorageError: If the disk layer rejects the delete.
        """
        with self._lock:
            if self._disk is not None:
                try:
                    self._disk.delete(key)
                except _DISK_ERRORS as exc:
                    raise StorageError(f"Cannot delete cache entry {key!r}: {exc}") from exc
            self._memory.pop(key, None)
        logger.debug("Cache INVALIDATED: %s", key)

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def clear(self) -> None:
        """Remove all entries from both layers.

        Raises:
            StorageError: If the disk layer cannot be cleared.
        """
        with self._lock:
            if self._disk is not None:
                try:
                    self._disk.clear()
                except _DISK_ERRORS as exc:
                    raise StorageError(f"Cannot clear cache: {exc}") from exc
            self._memory.clear()
        logger.info("Cache CLEARED")

    def prune(self) -> int:
        """Physically remove every expired or unreadable entry.

        Returns:
            The number of keys removed.

        Raises:
            StorageError: If the disk layer rejects a delete. Entries removed
                before the failure stay removed.
        """
        now = self._clock()
        removed = 0
        with self._lock:
            for key in list(self._keys()):
                entry = self._peek(key)
                if entry is not None and entry.is_valid(now):
                    continue
                if self._disk is not None:
                    try:
                        self._disk.delete(key)
                    except _DISK_ERRORS as exc:
                        raise StorageError(f"Cannot delete cache entry {key!r}: {exc}") from exc
                self._memory.pop(key, None)
                removed += 1
        if removed:
            logger.debug("Cache PRUNED %d entries", removed)
        return removed

    def stats(self) -> dict[str, Any]:
        """Return store statistics without loading disk entries into memory.

        Returns:
            A ``dict`` with ``persistent`` (bool), ``entries`` (all stored
            keys), ``expired`` (keys past their TTL or unreadable),
            ``memory_entries``, and ``directory`` (str path or ``None``).
        """
        now = self._clock()
        with self._lock:
            keys = list(self._keys())
            expired = 0
            for key in keys:
                entry = self._peek(key)
                if entry is None or not entry.is_valid(now):
                    expired += 1
            return {
                "persistent": self.persistent,
                "entries": len(keys),
                "expired": expired,
                "memory_entries": len(self._memory),
                "directory": str(self._directory) if self._directory else None,
            }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._disk is not None:
            self._disk.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _keys(self) -> set[str]:
        """All keys across both layers (must hold lock)."""
        keys = set(self._memory)
        if self._disk is not None:
            keys.update(k for k in self._disk.iterkeys() if isinstance(k, str))
        return keys

    def _peek(self, key: str) -> Optional[CacheEntry]:
        """Find the raw entry for *key* in either layer, leaving memory untouched."""
        with self._lock:
            entry = self._memory.get(key)
            if entry is not None or self._disk is None:
                return entry

            try:
                record = self._disk.get(key)
            except _DISK_ERRORS as exc:
                logger.warning("Cache disk read failed for %s: %s", key, exc)
                return None
            if record is None:
                return None

            try:
                return CacheEntry.from_record(record)
            except ValueError as exc:
                logger.warning("Discarding malformed cache record %s: %s", key, exc)
                return None

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        """Like :meth:`_peek`, but promotes a disk hit into memory."""
        with self._lock:
            entry = self._peek(key)
            if entry is not None:
                self._memory[key] = entry
            return entry
