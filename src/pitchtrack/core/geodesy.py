"""
Geodetic helpers.

Local-meter vectors use an equirectangular approximation around a reference
latitude. Over the extent of a sports pitch (< 100 m) the error against a true
geodesic is far below GPS noise, and the approximation keeps the frame builder
and the mapper trivially consistent with each other.
"""
import math
from typing import Tuple, Union

import numpy as np
from pyproj import Geod

from pitchtrack.domain.types import GeodeticCoordinate
from pitchtrack.models import METERS_PER_DEGREE

ArrayLike = Union[float, np.ndarray]

_WGS84 = Geod(ellps="WGS84")


def meters_per_degree_lon(reference_latitude: float) -> float:
    return METERS_PER_DEGREE * math.cos(math.radians(reference_latitude))


def local_vector(
    start: GeodeticCoordinate,
    end: GeodeticCoordinate,
    reference_latitude: float,
) -> Tuple[float, float]:
    """Vector start -> end in meters: (east, north)."""
    dx = (end.longitude - start.longitude) * meters_per_degree_lon(reference_latitude)
    dy = (end.latitude - start.latitude) * METERS_PER_DEGREE
    return dx, dy


def local_vectors(
    origin: GeodeticCoordinate,
    lat: ArrayLike,
    lon: ArrayLike,
) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorized local_vector from `origin` to many fixes, referenced at the origin latitude."""
    lat = np.asarray(lat, dtype=float)
    lon = np.asarray(lon, dtype=float)
    dx = (lon - origin.longitude) * meters_per_degree_lon(origin.latitude)
    dy = (lat - origin.latitude) * METERS_PER_DEGREE
    return dx, dy


def midpoint(a: GeodeticCoordinate, b: GeodeticCoordinate) -> GeodeticCoordinate:
    """Arithmetic midpoint in degrees (adequate at pitch scale)."""
    return GeodeticCoordinate(
        latitude=(a.latitude + b.latitude) / 2,
        longitude=(a.longitude + b.longitude) / 2,
    )


def geodesic_distance(a: GeodeticCoordinate, b: GeodeticCoordinate) -> float:
    """Ellipsoidal (WGS84) distance in meters, used to audit calibrations."""
    # Geod expects lon/lat ordering.
    _, _, dist = _WGS84.inv(a.longitude, a.latitude, b.longitude, b.latitude)
    return float(dist)
