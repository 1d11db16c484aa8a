"""
Bounded top-K aggregation.

MinHeap is a binary min-heap ordered by a key function. TopK keeps the K
best items seen so far in a MinHeap whose root is the current worst retained
item, so memory stays O(K) no matter how long the candidate stream is.

Order among items with equal keys is unspecified.
"""

import heapq
import itertools
from typing import Any, Callable, Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")


def _identity(item):
    return item


class MinHeap(Generic[T]):
    """Binary min-heap over arbitrary items ordered by ``key(item)``."""

    def __init__(self, key: Callable[[T], Any] = _identity, items: Iterable[T] = ()):
        self._key = key
        # Entries are [key, seq, item]; seq keeps non-comparable items out of comparisons
        self._counter = itertools.count()
        self._heap: List[list] = [[key(item), next(self._counter), item] for item in items]
        heapq.heapify(self._heap)

    def push(self, item: T) -> None:
        heapq.heappush(self._heap, [self._key(item), next(self._counter), item])

    def pop(self) -> Optional[T]:
        """Remove and return the smallest item, or None when empty."""
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[2]

    def peek(self) -> Optional[T]:
        """Return the smallest item without removing it, or None when empty."""
        if not self._heap:
            return None
        return self._heap[0][2]

    def replace(self, item: T) -> Optional[T]:
        """Pop the smallest item and push ``item`` in one step."""
        if not self._heap:
            self.push(item)
            return None
        return heapq.heapreplace(self._heap, [self._key(item), next(self._counter), item])[2]

    def size(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def to_list(self) -> List[T]:
        """Items in heap (not sorted) order."""
        return [entry[2] for entry in self._heap]


class TopK(Generic[T]):
    """
    Fixed-capacity aggregator retaining the ``k`` highest-keyed items.

    While fewer than ``k`` items are held every candidate is admitted. Once
    full, a candidate only displaces the current minimum when its key is
    strictly greater, so the size stays pinned at ``k``.
    """

    def __init__(self, k: int, key: Callable[[T], Any] = _identity):
        self.k = k
        self._key = key
        self._heap: MinHeap[T] = MinHeap(key=key)

    def push(self, item: T) -> bool:
        """Offer a candidate; return True when it was retained."""
        if self.k <= 0:
            return False

        if self._heap.size() < self.k:
            self._heap.push(item)
            return True

        worst = self._heap.peek()
        if self._key(item) > self._key(worst):
            self._heap.replace(item)
            return True
        return False

    def peek(self) -> Optional[T]:
        """The worst retained item."""
        return self._heap.peek()

    def pop(self) -> Optional[T]:
        """Remove and return the worst retained item."""
        return self._heap.pop()

    def size(self) -> int:
        return self._heap.size()

    def __len__(self) -> int:
        return self._heap.size()

    def results(self) -> List[T]:
        """Retained items sorted best first."""
        return sorted(self._heap.to_list(), key=self._key, reverse=True)
