"""Typed encode/decode adapters for the expiring store.

The store itself only holds bytes. Each call site supplies a :class:`Codec`
describing the Python type it expects back, so one store instance can hold
market lists, price histories, and anything else without a single
dynamically-typed entry representation.

Codecs are thin wrappers over :class:`pydantic.TypeAdapter`: values are
dumped to JSON bytes on write and validated back into the declared type on
read.

Example::

    from coinboard.cache.codec import Codec
    from coinboard.models import MarketEntry

    markets = Codec(list[MarketEntry])
    payload = markets.encode(entries)
    assert markets.decode(payload) == entries
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from coinboard.exceptions import EncodingError

T = TypeVar("T")


class Codec(Generic[T]):
    """JSON codec for values of one declared type.

    Args:
        type_: Any type :class:`pydantic.TypeAdapter` understands, e.g.
            ``list[MarketEntry]`` or ``dict[str, float]``.
    """

    def __init__(self, type_: Any) -> None:
        self._type = type_
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def __repr__(self) -> str:
        return f"Codec({self._type!r})"

    def encode(self, value: T) -> bytes:
        """Serialise *value* to JSON bytes.

        Raises:
            EncodingError: If the value does not match the declared type
                or contains something JSON cannot represent.
        """
        try:
            return self._adapter.dump_json(value)
        except (ValueError, TypeError) as exc:
            raise EncodingError(
                f"Cannot encode {type(value).__name__} as {self._type!r}: {exc}"
            ) from exc

    def decode(self, payload: bytes) -> T:
        """Validate JSON *payload* back into the declared type.

        Raises:
            pydantic.ValidationError: If the payload is corrupt or was
                written in an incompatible format. The store turns this
                into a cache miss.
        """
        return self._adapter.validate_json(payload)


JSON_CODEC: Codec[Any] = Codec(Any)
"""Untyped codec for plain JSON-compatible values (dicts, lists, scalars)."""
