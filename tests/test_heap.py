"""
Bounded top-K aggregator tests.
"""

import random

from vecsearch.vector.heap import MinHeap, TopK


def test_min_heap_orders_items():
    heap = MinHeap()
    for value in [5, 3, 8, 1, 9, 2]:
        heap.push(value)

    assert heap.size() == 6
    assert heap.peek() == 1
    assert [heap.pop() for _ in range(6)] == [1, 2, 3, 5, 8, 9]


def test_min_heap_empty():
    """Test that pop and peek return None on an empty heap."""
    heap = MinHeap()
    assert heap.pop() is None
    assert heap.peek() is None
    assert heap.size() == 0


def test_min_heap_with_key_and_unorderable_items():
    """Items that cannot be compared are ordered by key only."""
    heap = MinHeap(key=lambda item: item["score"])
    heap.push({"score": 0.5, "id": "a"})
    heap.push({"score": 0.1, "id": "b"})
    heap.push({"score": 0.5, "id": "c"})

    assert heap.pop()["id"] == "b"
    assert heap.size() == 2


def test_top_k_keeps_size_pinned():
    top = TopK(3)
    for value in range(10):
        top.push(value)
        assert top.size() <= 3

    assert top.size() == 3
    assert top.results() == [9, 8, 7]


def test_top_k_retains_best_seen():
    """After any sequence of pushes the retained set is the K best seen."""
    rng = random.Random(7)
    values = rng.sample(range(10_000), 500)

    top = TopK(10)
    for i, value in enumerate(values):
        top.push(value)
        seen = values[: i + 1]
        assert sorted(top.results()) == sorted(seen)[-10:]


def test_top_k_rejects_equal_when_full():
    """A candidate only displaces the minimum when strictly better."""
    top = TopK(2, key=lambda item: item[0])
    assert top.push((1, "first"))
    assert top.push((2, "second"))
    assert not top.push((1, "tie"))
    assert top.push((3, "third"))

    assert [item[1] for item in top.results()] == ["third", "second"]


def test_top_k_zero_capacity():
    top = TopK(0)
    assert not top.push(1)
    assert top.results() == []


def test_top_k_peek_is_worst_retained():
    top = TopK(3, key=lambda d: -d)  # nearest distances retained
    for distance in [0.9, 0.2, 0.5, 0.1, 0.7]:
        top.push(distance)

    assert top.peek() == 0.5
    assert top.results() == [0.1, 0.2, 0.5]
