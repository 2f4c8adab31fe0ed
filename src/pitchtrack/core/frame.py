import math
from typing import Optional

from pitchtrack.core.geodesy import local_vector, midpoint
from pitchtrack.domain.types import (
    CalibrationSet,
    FrameStrategy,
    ReferenceFrame,
    ReferenceKey,
)


def build_frame(calibration: CalibrationSet) -> Optional[ReferenceFrame]:
    """
    Derive the reference frame (origin + rotation) from the calibrated points.

    First matching rule wins:
      1. center + bottomMid: bottomMid -> center is the field's forward (+Y)
         axis, origin at center.
      2. spotLeft + spotRight: spotLeft -> spotRight is the field's +X axis,
         origin at the midpoint of the spots.
      3. center alone: origin at center, device north taken as field north.
    Returns None when none of the rules apply.

    The rotation is measured counter-clockwise from geographic east in local
    meters at the origin latitude; the mapper rotates by its exact negative.
    """
    center = calibration.get(ReferenceKey.CENTER)
    bottom_mid = calibration.get(ReferenceKey.BOTTOM_MID)
    spot_left = calibration.get(ReferenceKey.SPOT_LEFT)
    spot_right = calibration.get(ReferenceKey.SPOT_RIGHT)

    if center is not None and bottom_mid is not None:
        dx, dy = local_vector(bottom_mid, center, center.latitude)
        return ReferenceFrame(
            origin=center,
            rotation_radians=math.atan2(dy, dx) - math.pi / 2,
            strategy=FrameStrategy.CENTER_BOTTOM,
        )

    if spot_left is not None and spot_right is not None:
        origin = midpoint(spot_left, spot_right)
        dx, dy = local_vector(spot_left, spot_right, origin.latitude)
        return ReferenceFrame(
            origin=origin,
            rotation_radians=math.atan2(dy, dx),
            strategy=FrameStrategy.SPOT_AXIS,
        )

    if center is not None:
        return ReferenceFrame(origin=center, rotation_radians=0.0, strategy=FrameStrategy.CENTER_ONLY)

    return None
