"""
Calibration sampling.

One session measures one reference point: it issues `sample_count` one-shot
position queries at a fixed cadence and stores the mean of the successful
fixes in the calibration set. Only one session may be in flight.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

from pitchtrack.domain.types import CalibrationSet, GeodeticCoordinate, ReferenceKey
from pitchtrack.errors import NoCalibrationData, SensorUnavailable, SignalLost
from pitchtrack.models import SamplerConfig
from pitchtrack.sensors import PositionSource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
ErrorCallback = Callable[[Exception], None]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Sampling:
    key: ReferenceKey
    issued: int = 0


SamplerState = Union[Idle, Sampling]


def average_coordinates(samples: Sequence[GeodeticCoordinate]) -> GeodeticCoordinate:
    """
    Mean latitude and mean longitude, computed independently.

    fsum is exactly rounded, so the result does not depend on the order in
    which the samples arrived.
    """
    if not samples:
        raise ValueError("No samples")
    n = len(samples)
    return GeodeticCoordinate(
        latitude=math.fsum(s.latitude for s in samples) / n,
        longitude=math.fsum(s.longitude for s in samples) / n,
    )


class CalibrationSampler:
    def __init__(
        self,
        calibration: CalibrationSet,
        source: Optional[PositionSource],
        config: SamplerConfig = SamplerConfig(),
        on_progress: Optional[ProgressCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.calibration = calibration
        self.source = source
        self.config = config
        self.on_progress = on_progress
        self.on_error = on_error
        self.state: SamplerState = Idle()
        self.progress: float = 0.0
        self.last_error: Optional[str] = None
        self._buffer: List[GeodeticCoordinate] = []

    @property
    def is_active(self) -> bool:
        return isinstance(self.state, Sampling)

    @property
    def active_key(self) -> Optional[ReferenceKey]:
        return self.state.key if isinstance(self.state, Sampling) else None

    def start(self, key: Union[str, ReferenceKey]) -> bool:
        """Open a session for `key`. Returns False (and does nothing) while one is active."""
        key = ReferenceKey.parse(key)
        if self.is_active:
            logger.info("Calibration of '%s' already running, ignoring start('%s')", self.active_key.value, key.value)
            return False
        if self.source is None:
            self._record_error(SensorUnavailable())
            return False

        self.state = Sampling(key=key)
        self._buffer = []
        self._set_progress(0.0)
        logger.info("Calibrating '%s': %d samples every %.1fs", key.value, self.config.sample_count, self.config.interval_s)
        return True

    def tick(self) -> Optional[GeodeticCoordinate]:
        """
        Issue one position query for the active session.

        Returns the stored mean when this query completed the session, None
        otherwise (including when the session produced no data).
        """
        state = self.state
        if not isinstance(state, Sampling):
            return None

        try:
            self._buffer.append(self.source.current_position())
        except SignalLost as e:
            # Best effort: a failed query does not abort the session.
            self._record_error(e)
        except Exception as e:
            # Adapters may surface their own errors (timeouts, I/O); they count
            # as a failed query too, so the session still completes.
            self._record_error(SignalLost(f"GPS query failed: {e}"))

        issued = state.issued + 1
        self.state = Sampling(key=state.key, issued=issued)
        self._set_progress(issued / self.config.sample_count * 100.0)

        if issued >= self.config.sample_count:
            return self._finish(state.key)
        return None

    def run(
        self,
        key: Union[str, ReferenceKey],
        sleep: Callable[[float], None] = time.sleep,
    ) -> Optional[GeodeticCoordinate]:
        """Blocking driver: start a session and tick it at the configured cadence."""
        if not self.start(key):
            return None
        result = None
        while self.is_active:
            sleep(self.config.interval_s)
            if not self.is_active:
                # Terminated by reset() while waiting.
                break
            result = self.tick()
        return result

    def reset(self) -> None:
        """Force-terminate any active session and discard its buffer."""
        if self.is_active:
            logger.warning("Calibration of '%s' terminated by reset", self.active_key.value)
        self.state = Idle()
        self._buffer = []
        self.progress = 0.0
        self.last_error = None

    def _finish(self, key: ReferenceKey) -> Optional[GeodeticCoordinate]:
        samples = self._buffer
        self._buffer = []
        self.state = Idle()
        self._set_progress(0.0)

        if not samples:
            self._record_error(NoCalibrationData(key.value))
            return None

        mean = average_coordinates(samples)
        self.calibration.set(key, mean)
        logger.info(
            "Calibrated '%s' at (%.7f, %.7f) from %d/%d samples",
            key.value, mean.latitude, mean.longitude, len(samples), self.config.sample_count,
        )
        return mean

    def _set_progress(self, value: float) -> None:
        self.progress = value
        if self.on_progress is not None:
            self.on_progress(value)

    def _record_error(self, error: Exception) -> None:
        self.last_error = str(error)
        logger.warning("%s", error)
        if self.on_error is not None:
            self.on_error(error)
