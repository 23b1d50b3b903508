"""Min-ordered priority queue used by the drainage enforcer."""

import heapq
import itertools
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class PriorityQueue(Generic[T]):
    """
    Binary min-heap ordered by an injected key.

    The key is evaluated once, when an item is pushed. Items with equal keys
    pop in insertion order. The same item may be pushed any number of times;
    callers track visitation themselves.
    """

    def __init__(self, key: Callable[[T], Any]):
        self._key = key
        self._heap: List[Tuple[Any, int, T]] = []
        self._counter = itertools.count()

    def push(self, item: T) -> None:
        """Insert an item (sift-up)."""
        heapq.heappush(self._heap, (self._key(item), next(self._counter), item))

    def pop(self) -> Optional[T]:
        """
        Remove and return the item with the smallest key (sift-down).

        Returns:
            The item, or None when the queue is empty
        """
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[2]

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
