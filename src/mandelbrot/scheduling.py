"""Work scheduling strategies for distributing image rows across workers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Tuple

RowRange = Tuple[int, int]


class Cursor(Protocol):
    def fetch_add(self, amount: int) -> int: ...


class RowCursor:
    """Shared row counter owned by a single run.

    ``fetch_add`` is one indivisible read-modify-write; it is the only
    point where workers coordinate.
    """

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def fetch_add(self, amount: int) -> int:
        with self._lock:
            value = self._value
            self._value += amount
        return value

    @property
    def value(self) -> int:
        return self._value


def chunk_rows(chunk_id: int, chunk_size: int, height: int) -> RowRange:
    start = chunk_id * chunk_size
    return start, min(start + chunk_size, height)


@dataclass
class StaticScheduler:
    """Static work scheduling - pre-assigns chunks to workers round-robin."""

    height: int
    chunk_size: int
    n_workers: int
    assignments: Dict[int, List[int]] = field(init=False)

    def __post_init__(self) -> None:
        if self.chunk_size < 1 or self.n_workers < 1:
            raise ValueError("chunk_size and n_workers must be at least 1")
        total_chunks = (self.height + self.chunk_size - 1) // self.chunk_size
        self.assignments = {worker: [] for worker in range(self.n_workers)}
        for chunk_id in range(total_chunks):
            self.assignments[chunk_id % self.n_workers].append(chunk_id)

    def chunks_for_worker(self, worker: int) -> List[int]:
        """Get the list of chunk IDs assigned to a specific worker."""
        return self.assignments.get(worker, [])

    def rows_for_worker(self, worker: int) -> List[RowRange]:
        return [chunk_rows(cid, self.chunk_size, self.height) for cid in self.chunks_for_worker(worker)]


@dataclass
class DynamicScheduler:
    """Dynamic work scheduling - workers claim the next rows on demand."""

    height: int
    chunk_size: int = 1
    cursor: Optional[Cursor] = None

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if self.cursor is None:
            self.cursor = RowCursor()

    def request_rows(self) -> Optional[RowRange]:
        """Claim the next row range, or None once the cursor is past the image."""
        start = self.cursor.fetch_add(self.chunk_size)
        if start >= self.height:
            return None
        return start, min(start + self.chunk_size, self.height)
