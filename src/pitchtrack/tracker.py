"""
FieldTracker: the state object the host application holds.

It owns the calibration set, the per-period history, the calibration sampler
and the live position subscription. The host drives it with two signals
(tracking on/off and the current period) and reads back the history and the
status values for display.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Union

from pitchtrack.core.frame import build_frame
from pitchtrack.core.mapper import map_point
from pitchtrack.domain.schemas import CalibrationProfile
from pitchtrack.domain.types import CalibrationSet, GeodeticCoordinate, PlanarPoint, ReferenceFrame, ReferenceKey
from pitchtrack.errors import SensorUnavailable, SignalLost, UnknownProfile
from pitchtrack.history import PeriodHistory
from pitchtrack.models import DEFAULT_FIELD, FieldGeometry, SamplerConfig, WatchOptions
from pitchtrack.profiles import ProfileStore
from pitchtrack.sampler import CalibrationSampler, ProgressCallback
from pitchtrack.sensors import PositionSource, Watch

logger = logging.getLogger(__name__)


class FieldTracker:
    def __init__(
        self,
        source: Optional[PositionSource],
        profiles: ProfileStore,
        field: FieldGeometry = DEFAULT_FIELD,
        sampler_config: SamplerConfig = SamplerConfig(),
        watch_options: WatchOptions = WatchOptions(),
        clock: Callable[[], float] = time.time,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.source = source
        self.profiles = profiles
        self.field = field
        self.watch_options = watch_options
        self.clock = clock

        self.calibration = CalibrationSet()
        self.history = PeriodHistory()
        self.sampler = CalibrationSampler(
            self.calibration, source, sampler_config, on_progress=on_progress, on_error=self._set_status,
        )

        self.tracking_enabled = False
        self.current_period = 1
        self.viewed_period = 1
        self._watch: Optional[Watch] = None
        self._last_error: Optional[str] = None

    # --- signals from the host ---

    def set_tracking(self, enabled: bool) -> None:
        if enabled == self.tracking_enabled:
            return
        self.tracking_enabled = enabled
        if enabled:
            self.viewed_period = self.current_period
            self._subscribe()
        else:
            self._unsubscribe()

    def set_period(self, period: int) -> None:
        self.current_period = period
        # While live, the view follows the running period.
        if self.tracking_enabled:
            self.viewed_period = period

    def view_period(self, period: int) -> None:
        """Change the displayed period; new points still go to current_period."""
        self.viewed_period = period

    # --- live tracking ---

    def _subscribe(self) -> None:
        if self.source is None:
            self._record_error(SensorUnavailable())
            return
        self._watch = self.source.watch(self.handle_fix, self.handle_error, self.watch_options)
        logger.debug("Position subscription started (period %d)", self.current_period)

    def _unsubscribe(self) -> None:
        if self._watch is not None:
            self._watch.cancel()
            self._watch = None
            logger.debug("Position subscription stopped")

    def handle_fix(self, fix: GeodeticCoordinate) -> Optional[PlanarPoint]:
        """Map one incoming fix and record it under the current period."""
        if not self.tracking_enabled:
            return None
        point = map_point(fix, self.frame(), timestamp=int(self.clock() * 1000), field=self.field)
        if point is not None:
            self.history.append(self.current_period, point)
        return point

    def handle_error(self, error: SignalLost) -> None:
        self._record_error(error)

    # --- calibration ---

    def frame(self) -> Optional[ReferenceFrame]:
        return build_frame(self.calibration)

    def start_calibration(self, key: Union[str, ReferenceKey]) -> bool:
        return self.sampler.start(key)

    @property
    def calibration_count(self) -> int:
        return len(self.calibration)

    @property
    def needs_calibration(self) -> bool:
        """Tracking is running but the calibration set yields no reference frame."""
        return self.tracking_enabled and self.frame() is None

    @property
    def calibration_progress(self) -> float:
        return self.sampler.progress

    @property
    def last_error(self) -> Optional[str]:
        # Sampler errors and subscription errors share one status line; the
        # most recent one wins.
        return self._last_error

    def _record_error(self, error: Exception) -> None:
        self._set_status(error)
        logger.warning("%s", error)

    def _set_status(self, error: Exception) -> None:
        self._last_error = str(error)

    # --- profiles ---

    @property
    def can_save_profile(self) -> bool:
        return self.calibration_count >= self.profiles.config.min_points and not self.profiles.is_full

    def save_profile(self, name: str) -> CalibrationProfile:
        return self.profiles.save(name, self.calibration)

    def delete_profile(self, profile_id: int) -> bool:
        try:
            self.profiles.delete(profile_id)
        except UnknownProfile as e:
            self._record_error(e)
            return False
        return True

    def load_profile(self, profile_id: int) -> bool:
        """Replace the calibration set with a saved profile; refused while sampling."""
        if self.sampler.is_active:
            logger.warning("Profile %d not loaded: calibration of '%s' in progress",
                           profile_id, self.sampler.active_key.value)
            return False
        try:
            loaded = self.profiles.load(profile_id)
        except UnknownProfile as e:
            self._record_error(e)
            return False
        self.calibration.replace(loaded)
        logger.info("Loaded profile %d (%d points)", profile_id, self.calibration_count)
        return True

    # --- reset ---

    def reset(self) -> None:
        """Full match reset: stop tracking, terminate calibration, drop all state but saved profiles."""
        self.set_tracking(False)
        self.sampler.reset()
        self.calibration.clear()
        self.history.clear_all()
        self.current_period = 1
        self.viewed_period = 1
        self._last_error = None
