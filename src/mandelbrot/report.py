"""Structured results returned from a threaded run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class ChunkReport:
    """Container for outputs produced by ``run_computation``."""

    image: np.ndarray
    timing: Dict[str, Any]
    chunks: Optional[List[Dict[str, Any]]]

    def claimed_ranges(self) -> List[Tuple[int, int]]:
        """Row ranges computed during the run, sorted by start row."""
        return sorted((rec["start_row"], rec["end_row"]) for rec in self.chunks or [])

    @property
    def wall_time(self) -> float:
        return float(self.timing.get("wall_time", 0.0))
