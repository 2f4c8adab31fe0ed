from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pandas as pd

from pitchtrack.domain.types import PlanarPoint


class PeriodHistory:
    """
    Trajectory per scoring period.

    Entries are only ever appended, or dropped all at once by clear_all().
    Readers get tuples, so a recorded sequence cannot be edited in place.
    """

    def __init__(self) -> None:
        self._points: Dict[int, List[PlanarPoint]] = {}

    def append(self, period: int, point: PlanarPoint) -> None:
        self._points.setdefault(period, []).append(point)

    def points(self, period: int) -> Tuple[PlanarPoint, ...]:
        return tuple(self._points.get(period, ()))

    def latest(self, period: int) -> Optional[PlanarPoint]:
        pts = self._points.get(period)
        return pts[-1] if pts else None

    def periods(self) -> List[int]:
        return sorted(self._points)

    def clear_all(self) -> None:
        self._points = {}

    def __len__(self) -> int:
        return sum(len(p) for p in self._points.values())

    def to_dataframe(self) -> pd.DataFrame:
        rows = [
            {"period": period, "x": p.x, "y": p.y, "timestamp": p.timestamp}
            for period in self.periods()
            for p in self._points[period]
        ]
        return pd.DataFrame(rows, columns=["period", "x", "y", "timestamp"])
