from collections import OrderedDict
from typing import Generic, Hashable, Iterator, Optional, TypeVar

V = TypeVar('V')


class LRUCache(Generic[V]):
    """Fixed-capacity mapping that evicts the least recently used entry."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"LRU capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._entries: "OrderedDict[Hashable, V]" = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: Hashable) -> Optional[V]:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: Hashable, value: V) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = value
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._entries)
