import math
import time
import warnings
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from pitchtrack.core.geodesy import local_vector, local_vectors
from pitchtrack.domain.types import GeodeticCoordinate, PlanarPoint, ReferenceFrame
from pitchtrack.errors import InsufficientFrame
from pitchtrack.models import DEFAULT_FIELD, FieldGeometry


def project(
    fix: GeodeticCoordinate,
    frame: ReferenceFrame,
    field: FieldGeometry = DEFAULT_FIELD,
) -> Tuple[float, float]:
    """Geodetic fix -> (x, y) in field units for a known frame."""
    dx, dy = local_vector(frame.origin, fix, frame.origin.latitude)

    # Rotate back onto the field axes.
    c = math.cos(-frame.rotation_radians)
    s = math.sin(-frame.rotation_radians)
    rx = dx * c - dy * s
    ry = dx * s + dy * c

    cx, cy = field.center
    # Field north is up on the diagram, i.e. decreasing y.
    return cx + rx * field.units_per_meter, cy - ry * field.units_per_meter


def map_point(
    fix: GeodeticCoordinate,
    frame: Optional[ReferenceFrame],
    timestamp: Optional[int] = None,
    field: FieldGeometry = DEFAULT_FIELD,
) -> Optional[PlanarPoint]:
    """
    Map one fix onto the pitch. Returns None without a frame; a missing
    calibration withholds the point rather than guessing one.
    """
    if frame is None:
        return None
    x, y = project(fix, frame, field)
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return PlanarPoint(x=x, y=y, timestamp=timestamp)


def map_dataframe(
    df: pd.DataFrame,
    frame: Optional[ReferenceFrame],
    field: FieldGeometry = DEFAULT_FIELD,
) -> pd.DataFrame:
    """
    Vectorized mapping of a recorded track.

    Expects "lat" and "lon" columns; returns a copy with "x" and "y" columns
    added. Unlike map_point, a missing frame is an error here: a batch caller
    needs to know why nothing was produced.
    """
    if frame is None:
        raise InsufficientFrame()
    if "lat" not in df.columns or "lon" not in df.columns:
        raise ValueError(f"Track needs 'lat' and 'lon' columns (got {list(df.columns)})")

    dx, dy = local_vectors(frame.origin, df["lat"].values, df["lon"].values)

    c = math.cos(-frame.rotation_radians)
    s = math.sin(-frame.rotation_radians)
    rx = dx * c - dy * s
    ry = dx * s + dy * c

    cx, cy = field.center
    out = df.copy()
    out["x"] = cx + rx * field.units_per_meter
    out["y"] = cy - ry * field.units_per_meter

    # Out-of-pitch warning: usually a bad calibration, or a walk off the field.
    over_x = np.maximum(-out["x"].values, out["x"].values - field.width_units)
    over_y = np.maximum(-out["y"].values, out["y"].values - field.height_units)
    overshoot = np.maximum(np.maximum(over_x, over_y), 0.0)
    outside = overshoot > 0
    if np.any(outside):
        warnings.warn(
            f"{int(np.sum(outside))} point(s) fall outside the pitch. "
            f"Maximum distance to the boundary: {np.max(overshoot) / field.units_per_meter:.2f}m"
        )
    return out
