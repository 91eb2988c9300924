"""Expiring key-value storage for coinboard.

This package provides :class:`ExpiringStore`, a TTL-aware mapping from string
keys to encoded payloads, backed by :mod:`diskcache` on disk with an
in-memory layer in front. Values are encoded and decoded by per-call-site
:class:`Codec` adapters so one store can hold heterogeneous payloads.

The store is consumed by
:class:`~coinboard.repository.cache_first.CacheFirstRepository` and its
location and persistence are controlled by the ``cache`` section of the
global configuration (:class:`~coinboard.models.CacheConfig`).
"""

from coinboard.cache.codec import JSON_CODEC, Codec
from coinboard.cache.store import CacheEntry, ExpiringStore

__all__ = ["CacheEntry", "Codec", "ExpiringStore", "JSON_CODEC"]
