from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


# Equirectangular scale used for every geodetic -> local-meter conversion.
METERS_PER_DEGREE = 111132.0


@dataclass(frozen=True)
class FieldGeometry:
    """
    Field-hockey pitch in field units.

    The pitch diagram uses a fixed scale (10 units = 1 m), so a 91.4 m x 55 m
    pitch spans 914 x 550 units with (0, 0) in the top-left corner and y
    growing towards the bottom sideline.
    """
    length_m: float = 91.4
    width_m: float = 55.0
    units_per_meter: float = 10.0
    # Penalty spot distance from its back line.
    spot_offset_m: float = 6.4

    @property
    def width_units(self) -> float:
        return round(self.length_m * self.units_per_meter, 6)

    @property
    def height_units(self) -> float:
        return round(self.width_m * self.units_per_meter, 6)

    @property
    def center(self) -> Tuple[float, float]:
        return self.width_units / 2.0, self.height_units / 2.0

    @property
    def bottom_mid(self) -> Tuple[float, float]:
        return self.width_units / 2.0, self.height_units

    @property
    def spot_left(self) -> Tuple[float, float]:
        return round(self.spot_offset_m * self.units_per_meter, 6), self.height_units / 2.0

    @property
    def spot_right(self) -> Tuple[float, float]:
        x = self.width_units - round(self.spot_offset_m * self.units_per_meter, 6)
        return x, self.height_units / 2.0

    def contains(self, x: float, y: float) -> bool:
        return 0.0 <= x <= self.width_units and 0.0 <= y <= self.height_units


DEFAULT_FIELD = FieldGeometry()


@dataclass(frozen=True)
class SamplerConfig:
    """Calibration sampling cadence: `sample_count` one-shot queries, `interval_s` apart."""
    sample_count: int = 10
    interval_s: float = 1.0

    def __post_init__(self) -> None:
        if self.sample_count < 1:
            raise ValueError("sample_count must be >= 1")
        if self.interval_s < 0:
            raise ValueError("interval_s must be >= 0")


@dataclass(frozen=True)
class WatchOptions:
    """Options handed to a continuous position subscription."""
    high_accuracy: bool = True
    maximum_age_s: float = 0.0  # no cached fixes
    timeout_s: float = 5.0


@dataclass(frozen=True)
class ProfileConfig:
    storage_key: str = "pitchtrack_profiles"
    max_profiles: int = 3
    # Minimum calibrated reference points before a profile is worth saving.
    min_points: int = 2
