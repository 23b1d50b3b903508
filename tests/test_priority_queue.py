"""Tests for the priority queue."""

import pytest
from py_terrain.core.priority_queue import PriorityQueue


class TestPriorityQueue:
    """Test min-ordered extraction."""

    def test_pops_in_key_order(self):
        """Test that items come out smallest key first."""
        heights = {0: 0.5, 1: -0.2, 2: 0.9, 3: 0.1, 4: -0.7}
        queue = PriorityQueue(key=heights.get)
        for cell in heights:
            queue.push(cell)

        popped = [queue.pop() for _ in range(len(heights))]
        assert popped == [4, 1, 3, 0, 2]

    def test_empty_pop_returns_none(self):
        """Test that popping an empty queue is a defined empty result."""
        queue = PriorityQueue(key=lambda item: item)
        assert queue.pop() is None
        assert len(queue) == 0
        assert not queue

    def test_duplicates_allowed(self):
        """Test that the same item can be queued more than once."""
        queue = PriorityQueue(key=lambda item: item)
        queue.push(3)
        queue.push(3)
        queue.push(1)

        assert len(queue) == 3
        assert [queue.pop(), queue.pop(), queue.pop()] == [1, 3, 3]
        assert queue.pop() is None

    def test_ties_pop_in_insertion_order(self):
        """Test that equal keys keep insertion order."""
        queue = PriorityQueue(key=lambda item: 0)
        for item in ["a", "b", "c"]:
            queue.push(item)
        assert [queue.pop() for _ in range(3)] == ["a", "b", "c"]

    def test_interleaved_push_pop(self):
        """Test pushes after pops still respect ordering."""
        queue = PriorityQueue(key=lambda item: item)
        queue.push(5)
        queue.push(2)
        assert queue.pop() == 2
        queue.push(1)
        queue.push(7)
        assert queue.pop() == 1
        assert queue.pop() == 5
        assert queue.pop() == 7


@pytest.mark.parametrize("values", [
    [3, 1, 2],
    [10, -5, 0, 0, 8, -5],
    list(range(50, 0, -1)),
])
def test_heap_sorts(values):
    """Test that draining the queue yields sorted output."""
    queue = PriorityQueue(key=lambda item: item)
    for value in values:
        queue.push(value)

    drained = []
    while queue:
        drained.append(queue.pop())
    assert drained == sorted(values)
