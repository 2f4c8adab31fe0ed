from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, Union


class ReferenceKey(str, Enum):
    """Named physical landmarks on the pitch. Values are the persisted key names."""
    CENTER = "center"
    BOTTOM_MID = "bottomMid"
    SPOT_LEFT = "spotLeft"
    SPOT_RIGHT = "spotRight"

    @classmethod
    def parse(cls, value: Union[str, "ReferenceKey"]) -> "ReferenceKey":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown reference key {value!r} (expected one of: {valid})") from None


class FrameStrategy(str, Enum):
    CENTER_BOTTOM = "center_bottom"  # bottomMid -> center is field "forward"
    SPOT_AXIS = "spot_axis"          # spotLeft -> spotRight is field +X
    CENTER_ONLY = "center_only"      # device north assumed to be field north


@dataclass(frozen=True)
class GeodeticCoordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ReferenceFrame:
    origin: GeodeticCoordinate
    rotation_radians: float
    strategy: FrameStrategy


@dataclass(frozen=True)
class PlanarPoint:
    """Position on the pitch diagram in field units; timestamp in epoch ms."""
    x: float
    y: float
    timestamp: int


class CalibrationSet:
    """
    Mapping ReferenceKey -> GeodeticCoordinate with at most one entry per key.

    Keys may be given as ReferenceKey members or as their string values.
    """

    def __init__(self, points: Optional[Mapping[Union[str, ReferenceKey], GeodeticCoordinate]] = None):
        self._points: Dict[ReferenceKey, GeodeticCoordinate] = {}
        for key, coord in (points or {}).items():
            self._points[ReferenceKey.parse(key)] = coord

    def __getitem__(self, key: Union[str, ReferenceKey]) -> GeodeticCoordinate:
        return self._points[ReferenceKey.parse(key)]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, ReferenceKey)):
            return False
        try:
            return ReferenceKey.parse(key) in self._points
        except ValueError:
            return False

    def __iter__(self) -> Iterator[ReferenceKey]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CalibrationSet):
            return NotImplemented
        return self._points == other._points

    def __repr__(self) -> str:
        inner = ", ".join(f"{k.value}=({c.latitude}, {c.longitude})" for k, c in self._points.items())
        return f"CalibrationSet({inner})"

    def get(self, key: Union[str, ReferenceKey]) -> Optional[GeodeticCoordinate]:
        return self._points.get(ReferenceKey.parse(key))

    def items(self):
        return self._points.items()

    def set(self, key: Union[str, ReferenceKey], coord: GeodeticCoordinate) -> None:
        self._points[ReferenceKey.parse(key)] = coord

    def replace(self, other: "CalibrationSet") -> None:
        """Replace all entries wholesale with those of `other`."""
        self._points = dict(other._points)

    def clear(self) -> None:
        self._points = {}

    def copy(self) -> "CalibrationSet":
        return CalibrationSet(self._points)
