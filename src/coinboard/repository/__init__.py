"""Cache-first data access.

* :class:`ResourceDescriptor` and :func:`derive_key` -- identity of a
  fetchable resource and its deterministic cache key.
* :class:`CacheFirstRepository` -- returns fresh cached values, otherwise
  fetches and writes back.
* :class:`RequestCoalescer` -- optional in-flight de-duplication.
"""

from coinboard.repository.cache_first import CacheFirstRepository, FetchFn, KindStats
from coinboard.repository.coalescer import RequestCoalescer
from coinboard.repository.descriptor import ABSENT, ResourceDescriptor, derive_key

__all__ = [
    "ABSENT",
    "CacheFirstRepository",
    "FetchFn",
    "KindStats",
    "RequestCoalescer",
    "ResourceDescriptor",
    "derive_key",
]
