"""Resource descriptors and deterministic cache-key derivation.

A :class:`ResourceDescriptor` names what is being fetched: a resource *kind*
(``"markets"``, ``"chart"``) plus the parameters that change the fetched
data. :func:`derive_key` turns a descriptor into the string key used by the
expiring store.

Key layout is ``<kind>:<sha256>`` where the digest covers the kind and every
parameter sorted by name. Each value is JSON encoded, so ``1``, ``"1"`` and
``True`` all produce different keys, and an absent (``None``) value is
replaced by :data:`ABSENT`, a token no JSON encoding can produce. A
parameter explicitly set to ``None`` is therefore distinguishable from one
set to any real value, including the string ``"null"``. Values JSON cannot
encode (``Decimal``, ``date``, arbitrary objects) raise ``TypeError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any

ABSENT = "\x00absent"
"""Sentinel substituted for ``None`` parameter values before hashing."""


@dataclass(frozen=True)
class ResourceDescriptor:
    """Immutable identity of a fetchable resource.

    Build descriptors with :meth:`of` so parameters are always stored in
    sorted order.

    Attributes:
        kind: Resource kind; kept readable as the key prefix.
        params: ``(name, value)`` pairs sorted by name.

    Example::

        ResourceDescriptor.of("chart", id="bitcoin", days=7, vs_currency="usd")
    """

    kind: str
    params: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def of(cls, kind: str, **params: Any) -> ResourceDescriptor:
        """Create a descriptor from keyword parameters."""
        if not kind:
            raise ValueError("Resource kind must be a non-empty string")
        return cls(kind=kind, params=tuple(sorted(params.items())))

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value of parameter *name*, or *default*."""
        for key, value in self.params:
            if key == name:
                return value
        return default


def _normalize(value: Any) -> str:
    if value is None:
        return ABSENT
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_normalize(v) for v in value) + "]"
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def derive_key(descriptor: ResourceDescriptor) -> str:
    """Derive the cache key for *descriptor*.

    Pure and deterministic: descriptors with equal fields always map to the
    same key, and descriptors differing in any parameter map to different
    keys.

    Args:
        descriptor: The resource to key.

    Returns:
        A string of the form ``"<kind>:<64 hex chars>"``.

    Raises:
        TypeError: If a parameter value is not JSON-encodable.
    """
    parts = [descriptor.kind]
    for name, value in sorted(descriptor.params, key=lambda p: p[0]):
        parts.append(f"{name}={_normalize(value)}")
    raw = "|".join(parts)
    digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()
    return f"{descriptor.kind}:{digest}"
