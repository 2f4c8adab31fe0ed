"""
Reference frame construction and geodetic -> pitch mapping.

All inputs are synthetic: landmarks are placed at their regulation distances
from an origin at (52.0, 5.0) for a pitch rotated by a known heading, so every
landmark must land on its predefined diagram coordinate.
"""
import math

import numpy as np
import pandas as pd
import pytest

from pitchtrack.core.frame import build_frame
from pitchtrack.core.geodesy import local_vector
from pitchtrack.core.mapper import map_dataframe, map_point
from pitchtrack.domain.types import CalibrationSet, FrameStrategy, GeodeticCoordinate, ReferenceKey
from pitchtrack.errors import InsufficientFrame
from pitchtrack.models import DEFAULT_FIELD

from synthetic import ORIGIN, calibration_of, field_point, pitch_landmarks

C, BM, SL, SR = (
    ReferenceKey.CENTER,
    ReferenceKey.BOTTOM_MID,
    ReferenceKey.SPOT_LEFT,
    ReferenceKey.SPOT_RIGHT,
)

CENTER_XY = (457.0, 275.0)
BOTTOM_XY = (457.0, 550.0)
SPOT_LEFT_XY = (64.0, 275.0)
SPOT_RIGHT_XY = (850.0, 275.0)

HEADINGS = [0.0, math.radians(30), math.radians(90), math.radians(-135), math.radians(179)]

TS = 1_700_000_000_000


def _xy(fix, frame):
    p = map_point(fix, frame, timestamp=TS)
    return p.x, p.y


# ===========================================================================
# 1. FIELD GEOMETRY
# ===========================================================================

class TestFieldGeometry:

    def test_predefined_landmarks(self):
        assert DEFAULT_FIELD.center == CENTER_XY
        assert DEFAULT_FIELD.bottom_mid == BOTTOM_XY
        assert DEFAULT_FIELD.spot_left == SPOT_LEFT_XY
        assert DEFAULT_FIELD.spot_right == SPOT_RIGHT_XY

    def test_contains(self):
        assert DEFAULT_FIELD.contains(0.0, 0.0)
        assert DEFAULT_FIELD.contains(914.0, 550.0)
        assert not DEFAULT_FIELD.contains(-0.1, 10.0)
        assert not DEFAULT_FIELD.contains(10.0, 550.1)


# ===========================================================================
# 2. FRAME BUILDER
# ===========================================================================

class TestBuildFrame:

    def test_empty_set_has_no_frame(self):
        assert build_frame(CalibrationSet()) is None

    @pytest.mark.parametrize("keys", [(BM,), (SL,), (SR,), (BM, SL), (BM, SR)])
    def test_insufficient_sets_have_no_frame(self, keys):
        assert build_frame(calibration_of(pitch_landmarks(), *keys)) is None

    def test_center_only(self):
        frame = build_frame(calibration_of(pitch_landmarks(), C))
        assert frame.origin == ORIGIN
        assert frame.rotation_radians == 0.0
        assert frame.strategy is FrameStrategy.CENTER_ONLY

    @pytest.mark.parametrize("heading", HEADINGS)
    def test_center_bottom_recovers_heading(self, heading):
        frame = build_frame(calibration_of(pitch_landmarks(heading), C, BM))
        assert frame.strategy is FrameStrategy.CENTER_BOTTOM
        assert frame.origin == ORIGIN
        np.testing.assert_allclose(
            math.remainder(frame.rotation_radians - heading, 2 * math.pi), 0.0, atol=1e-9,
        )

    @pytest.mark.parametrize("heading", HEADINGS)
    def test_spot_axis_recovers_heading(self, heading):
        frame = build_frame(calibration_of(pitch_landmarks(heading), SL, SR))
        assert frame.strategy is FrameStrategy.SPOT_AXIS
        np.testing.assert_allclose(
            math.remainder(frame.rotation_radians - heading, 2 * math.pi), 0.0, atol=1e-9,
        )

    def test_spot_axis_origin_is_midpoint(self):
        lm = pitch_landmarks(math.radians(30))
        frame = build_frame(calibration_of(lm, SL, SR))
        np.testing.assert_allclose(
            [frame.origin.latitude, frame.origin.longitude],
            [(lm[SL].latitude + lm[SR].latitude) / 2, (lm[SL].longitude + lm[SR].longitude) / 2],
            rtol=0, atol=1e-12,
        )

    def test_center_bottom_wins_over_spots(self):
        lm = pitch_landmarks(math.radians(10))
        frame = build_frame(calibration_of(lm, C, BM, SL, SR))
        assert frame.strategy is FrameStrategy.CENTER_BOTTOM

    def test_spots_win_over_center_only(self):
        lm = pitch_landmarks(math.radians(10))
        frame = build_frame(calibration_of(lm, C, SL, SR))
        assert frame.strategy is FrameStrategy.SPOT_AXIS

    @pytest.mark.parametrize("heading", [0.0, math.radians(30), math.radians(90)])
    def test_swapping_spot_labels_flips_rotation_by_pi(self, heading):
        lm = pitch_landmarks(heading)
        normal = build_frame(CalibrationSet({SL: lm[SL], SR: lm[SR]}))
        swapped = build_frame(CalibrationSet({SL: lm[SR], SR: lm[SL]}))
        assert math.isclose(abs(normal.rotation_radians - swapped.rotation_radians), math.pi, abs_tol=1e-12)

    def test_center_bottom_reference_latitude_is_center(self):
        lm = pitch_landmarks(math.radians(45))
        dx, dy = local_vector(lm[BM], lm[C], lm[C].latitude)
        frame = build_frame(calibration_of(lm, C, BM))
        assert frame.rotation_radians == math.atan2(dy, dx) - math.pi / 2


# ===========================================================================
# 3. LIVE POSITION MAPPER
# ===========================================================================

class TestMapPoint:

    def test_no_frame_returns_none(self):
        for fix in (ORIGIN, GeodeticCoordinate(0.0, 0.0), GeodeticCoordinate(-89.9, 179.9)):
            assert map_point(fix, None) is None

    def test_empty_calibration_never_produces_a_point(self):
        assert map_point(ORIGIN, build_frame(CalibrationSet())) is None

    def test_center_maps_to_field_center(self):
        frame = build_frame(calibration_of(pitch_landmarks(), C))
        assert _xy(ORIGIN, frame) == CENTER_XY

    def test_center_only_assumes_north_is_up(self):
        frame = build_frame(calibration_of(pitch_landmarks(), C))
        # 10 m north of the center is 100 units up the diagram, 5 m east is 50 units right.
        np.testing.assert_allclose(_xy(field_point(0.0, 5.0, 10.0), frame), (507.0, 175.0), atol=1e-6)

    @pytest.mark.parametrize("heading", HEADINGS)
    def test_spots_land_on_predefined_spots(self, heading):
        lm = pitch_landmarks(heading)
        frame = build_frame(calibration_of(lm, SL, SR))
        np.testing.assert_allclose(_xy(lm[SL], frame), SPOT_LEFT_XY, atol=1e-6)
        np.testing.assert_allclose(_xy(lm[SR], frame), SPOT_RIGHT_XY, atol=1e-6)
        np.testing.assert_allclose(_xy(lm[C], frame), CENTER_XY, atol=1e-6)

    @pytest.mark.parametrize("heading", HEADINGS)
    def test_center_bottom_lands_on_predefined_points(self, heading):
        lm = pitch_landmarks(heading)
        frame = build_frame(calibration_of(lm, C, BM))
        np.testing.assert_allclose(_xy(lm[C], frame), CENTER_XY, atol=1e-9)
        np.testing.assert_allclose(_xy(lm[BM], frame), BOTTOM_XY, atol=1e-6)
        np.testing.assert_allclose(_xy(lm[SL], frame), SPOT_LEFT_XY, atol=1e-6)
        np.testing.assert_allclose(_xy(lm[SR], frame), SPOT_RIGHT_XY, atol=1e-6)

    @pytest.mark.parametrize("heading", HEADINGS)
    def test_both_strategies_agree(self, heading):
        lm = pitch_landmarks(heading)
        by_center = build_frame(calibration_of(lm, C, BM))
        by_spots = build_frame(calibration_of(lm, SL, SR))
        fix = field_point(heading, 20.0, -12.5)
        np.testing.assert_allclose(_xy(fix, by_center), _xy(fix, by_spots), atol=1e-6)
        np.testing.assert_allclose(_xy(fix, by_center), (657.0, 400.0), atol=1e-6)

    def test_idempotent(self):
        frame = build_frame(calibration_of(pitch_landmarks(math.radians(37)), C, BM))
        fix = GeodeticCoordinate(52.00012345, 5.00023456)
        first = map_point(fix, frame, timestamp=TS)
        for _ in range(5):
            assert map_point(fix, frame, timestamp=TS) == first

    def test_timestamp_defaults_to_now_in_ms(self):
        frame = build_frame(calibration_of(pitch_landmarks(), C))
        p = map_point(ORIGIN, frame)
        assert isinstance(p.timestamp, int)
        assert p.timestamp > 1_600_000_000_000


# ===========================================================================
# 4. BATCH MAPPING
# ===========================================================================

class TestMapDataFrame:

    @pytest.fixture
    def frame(self):
        return build_frame(calibration_of(pitch_landmarks(math.radians(30)), SL, SR))

    def test_matches_scalar_mapper(self, frame):
        fixes = [field_point(math.radians(30), a, b) for a, b in [(0, 0), (10, 5), (-30, -20), (44, 26)]]
        df = pd.DataFrame({"lat": [f.latitude for f in fixes], "lon": [f.longitude for f in fixes]})
        out = map_dataframe(df, frame)
        expected = np.array([_xy(f, frame) for f in fixes])
        np.testing.assert_allclose(out[["x", "y"]].values, expected, atol=1e-9)

    def test_input_is_not_modified(self, frame):
        df = pd.DataFrame({"lat": [52.0], "lon": [5.0]})
        map_dataframe(df, frame)
        assert list(df.columns) == ["lat", "lon"]

    def test_missing_frame_raises(self):
        with pytest.raises(InsufficientFrame):
            map_dataframe(pd.DataFrame({"lat": [52.0], "lon": [5.0]}), None)

    def test_missing_columns_raise(self, frame):
        with pytest.raises(ValueError):
            map_dataframe(pd.DataFrame({"latitude": [52.0]}), frame)

    def test_points_outside_pitch_warn(self, frame):
        far = field_point(math.radians(30), 60.0, 0.0)
        df = pd.DataFrame({"lat": [ORIGIN.latitude, far.latitude], "lon": [ORIGIN.longitude, far.longitude]})
        with pytest.warns(UserWarning, match="1 point"):
            map_dataframe(df, frame)
