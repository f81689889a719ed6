# src/tracesink/contracts/bounded.py
"""Capacity-limited containers for span attributes, events and links.

Key design decisions:
- Drop-newest: once a container is full, new entries are rejected and counted.
  Entries already accepted are never evicted, so the earliest data recorded
  on a span survives.
- Overwriting an existing attribute key is not a drop and keeps its position.
- Aggregate logging: log every 100 drops per container to prevent Warning Fatigue.
- freeze() makes a container read-only once it is attached to a SpanRecord.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, Generic, Protocol, TypeVar, overload, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

AttributeScalar = str | bool | int | float
AttributeValue = AttributeScalar | tuple[str, ...] | tuple[bool, ...] | tuple[int, ...] | tuple[float, ...]

_SCALAR_TYPES = (str, bool, int, float)


class FrozenCollectionError(TypeError):
    """Raised when a frozen bounded collection is mutated."""


def clean_attribute_value(key: str, value: Any) -> AttributeValue:
    """Validate an attribute value and normalize sequences to tuples.

    Args:
        key: Attribute key (used in error messages)
        value: Candidate value

    Returns:
        The scalar unchanged, or a tuple for sequence values

    Raises:
        TypeError: If the value is not a scalar or a homogeneous sequence of scalars
    """
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        items = tuple(value)
        item_types = {type(item) for item in items}
        if len(item_types) > 1:
            raise TypeError(f"Attribute {key!r} sequence must be homogeneous, got types {sorted(t.__name__ for t in item_types)}")
        if item_types and not issubclass(next(iter(item_types)), _SCALAR_TYPES):
            raise TypeError(f"Attribute {key!r} sequence items must be str, bool, int or float, got {type(items[0]).__name__}")
        return items
    raise TypeError(f"Attribute {key!r} must be str, bool, int, float or a sequence of those, got {type(value).__name__}")


def typed_attribute_items(items: Iterable[tuple[str, AttributeValue]]) -> tuple[tuple[str, Any], ...]:
    """Pair each attribute value with its type for equality and hashing.

    ``True == 1`` and ``1 == 1.0`` in Python, but those values encode
    differently on the wire, so attribute sets holding them must not compare equal.
    """
    return tuple((key, _typed_value(value)) for key, value in items)


def _typed_value(value: AttributeValue) -> tuple[type, Any]:
    if isinstance(value, tuple):
        return (tuple, tuple((type(item), item) for item in value))
    return (type(value), value)


@runtime_checkable
class BoundedCollection(Protocol):
    """Observable surface shared by every bounded container."""

    @property
    def capacity(self) -> int: ...

    @property
    def dropped_count(self) -> int: ...

    @property
    def is_frozen(self) -> bool: ...

    def __len__(self) -> int: ...

    def freeze(self) -> None: ...


class _BoundedBase:
    """Capacity, drop accounting and freezing shared by the concrete containers."""

    # Log aggregate metrics every N drops to avoid Warning Fatigue
    _LOG_INTERVAL = 100

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._capacity = capacity
        self._dropped_count = 0
        self._last_logged_drop_count = 0
        self._frozen = False

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenCollectionError(f"{type(self).__name__} is frozen and cannot be modified")

    def _record_drop(self) -> None:
        self._dropped_count += 1
        if self._dropped_count - self._last_logged_drop_count >= self._LOG_INTERVAL:
            logger.warning(
                "Bounded collection full - entries dropped",
                collection=type(self).__name__,
                dropped_since_last_log=self._dropped_count - self._last_logged_drop_count,
                dropped_total=self._dropped_count,
                capacity=self._capacity,
            )
            self._last_logged_drop_count = self._dropped_count

    @property
    def capacity(self) -> int:
        """Maximum number of entries retained."""
        return self._capacity

    @property
    def dropped_count(self) -> int:
        """Number of entries rejected because the container was full."""
        return self._dropped_count

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the container read-only. Idempotent."""
        self._frozen = True


class BoundedAttributes(_BoundedBase, Mapping[str, AttributeValue]):
    """Ordered, capacity-limited mapping of attribute key to value.

    Example:
        attributes = BoundedAttributes(capacity=2)
        attributes.set("http.method", "GET")
        attributes.update({"http.status_code": 200, "http.route": "/users"})
        assert len(attributes) == 2
        assert attributes.dropped_count == 1
    """

    def __init__(
        self,
        capacity: int = 128,
        initial: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
    ) -> None:
        super().__init__(capacity)
        self._items: dict[str, AttributeValue] = {}
        if initial is not None:
            self.update(initial)

    def set(self, key: str, value: Any) -> bool:
        """Insert or overwrite one attribute.

        Returns:
            True if the value was stored, False if it was dropped

        Raises:
            FrozenCollectionError: If the container is frozen
            TypeError: If key is not a string or value is not a valid attribute value
            ValueError: If key is empty
        """
        self._check_mutable()
        if not isinstance(key, str):
            raise TypeError(f"Attribute key must be a string, got {type(key).__name__}")
        if not key:
            raise ValueError("Attribute key cannot be empty")
        cleaned = clean_attribute_value(key, value)
        if key in self._items:
            self._items[key] = cleaned
            return True
        if len(self._items) >= self._capacity:
            self._record_drop()
            return False
        self._items[key] = cleaned
        return True

    def update(self, attributes: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> int:
        """Insert several attributes in iteration order.

        Returns:
            Number of entries stored (overwrites included)
        """
        pairs = attributes.items() if isinstance(attributes, Mapping) else attributes
        return sum(1 for key, value in pairs if self.set(key, value))

    def __getitem__(self, key: str) -> AttributeValue:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundedAttributes):
            return NotImplemented
        return (
            typed_attribute_items(self._items.items()) == typed_attribute_items(other._items.items())
            and self._capacity == other._capacity
            and self._dropped_count == other._dropped_count
        )

    def __hash__(self) -> int:
        if not self._frozen:
            raise TypeError("unhashable type: mutable 'BoundedAttributes' (freeze it first)")
        return hash((typed_attribute_items(self._items.items()), self._capacity, self._dropped_count))

    def __repr__(self) -> str:
        return f"BoundedAttributes({self._items!r}, capacity={self._capacity}, dropped={self._dropped_count})"


class BoundedSequence(_BoundedBase, Sequence[T], Generic[T]):
    """Ordered, capacity-limited sequence used for span events and links.

    Example:
        events = BoundedSequence[SpanEvent](capacity=128)
        events.append(SpanEvent(name="retry", timestamp=now))
    """

    def __init__(self, capacity: int = 128, initial: Iterable[T] = ()) -> None:
        super().__init__(capacity)
        self._items: list[T] = []
        self.extend(initial)

    def append(self, item: T) -> bool:
        """Append one entry.

        Returns:
            True if the entry was stored, False if it was dropped

        Raises:
            FrozenCollectionError: If the container is frozen
        """
        self._check_mutable()
        if len(self._items) >= self._capacity:
            self._record_drop()
            return False
        self._items.append(item)
        return True

    def extend(self, items: Iterable[T]) -> int:
        """Append entries in order. Returns the number stored."""
        return sum(1 for item in items if self.append(item))

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[T, ...]: ...

    def __getitem__(self, index: int | slice) -> T | tuple[T, ...]:
        if isinstance(index, slice):
            return tuple(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundedSequence):
            return NotImplemented
        return (
            self._items == other._items
            and self._capacity == other._capacity
            and self._dropped_count == other._dropped_count
        )

    def __hash__(self) -> int:
        if not self._frozen:
            raise TypeError("unhashable type: mutable 'BoundedSequence' (freeze it first)")
        return hash((tuple(self._items), self._capacity, self._dropped_count))

    def __repr__(self) -> str:
        return f"BoundedSequence({self._items!r}, capacity={self._capacity}, dropped={self._dropped_count})"
