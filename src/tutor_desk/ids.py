"""Per-entity identifier counters."""
import itertools


class IdAllocator:
    """Issues 1, 2, 3, ... for one entity type. Values are never handed out twice."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next(self) -> int:
        return next(self._counter)
