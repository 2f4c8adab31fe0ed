import math
from itertools import combinations
from pathlib import Path
from typing import List, Optional

from pitchtrack.core.frame import build_frame
from pitchtrack.core.geodesy import geodesic_distance
from pitchtrack.domain.types import CalibrationSet, ReferenceKey
from pitchtrack.models import DEFAULT_FIELD, FieldGeometry

_LABELS = {
    ReferenceKey.CENTER: "Center spot",
    ReferenceKey.BOTTOM_MID: "Bottom sideline, midpoint",
    ReferenceKey.SPOT_LEFT: "Penalty spot, left",
    ReferenceKey.SPOT_RIGHT: "Penalty spot, right",
}


def landmark_position(key: ReferenceKey, field: FieldGeometry = DEFAULT_FIELD):
    """Predefined position of a landmark on the pitch diagram, in field units."""
    return {
        ReferenceKey.CENTER: field.center,
        ReferenceKey.BOTTOM_MID: field.bottom_mid,
        ReferenceKey.SPOT_LEFT: field.spot_left,
        ReferenceKey.SPOT_RIGHT: field.spot_right,
    }[key]


def nominal_distance(a: ReferenceKey, b: ReferenceKey, field: FieldGeometry = DEFAULT_FIELD) -> float:
    """Distance in meters between two landmarks on a regulation pitch."""
    xa, ya = landmark_position(a, field)
    xb, yb = landmark_position(b, field)
    return math.hypot(xb - xa, yb - ya) / field.units_per_meter


def build_report(
    calibration: CalibrationSet,
    name: Optional[str] = None,
    field: FieldGeometry = DEFAULT_FIELD,
) -> str:
    lines: List[str] = []
    lines.append(f"# Calibration report{': ' + name if name else ''}")
    lines.append("")
    lines.append(f"Pitch: {field.length_m} m x {field.width_m} m, {field.units_per_meter:g} units per meter.")
    lines.append("")

    lines.append("## Reference points")
    lines.append("")
    lines.append("| Landmark | Latitude | Longitude |")
    lines.append("|---|---|---|")
    for key in ReferenceKey:
        coord = calibration.get(key)
        if coord is None:
            lines.append(f"| {_LABELS[key]} | - | - |")
        else:
            lines.append(f"| {_LABELS[key]} | {coord.latitude:.8f} | {coord.longitude:.8f} |")
    lines.append("")

    lines.append("## Reference frame")
    lines.append("")
    frame = build_frame(calibration)
    if frame is None:
        lines.append("No reference frame: calibrate the center spot, center + bottom sideline, "
                     "or both penalty spots. Tracking produces no points.")
    else:
        lines.append(f"- Strategy: `{frame.strategy.value}`")
        lines.append(f"- Origin: {frame.origin.latitude:.8f}, {frame.origin.longitude:.8f}")
        lines.append(f"- Rotation: {math.degrees(frame.rotation_radians):.3f}°")
    lines.append("")

    pairs = [(a, b) for a, b in combinations(list(ReferenceKey), 2) if a in calibration and b in calibration]
    if pairs:
        lines.append("## Landmark distances")
        lines.append("")
        lines.append("| From | To | Measured (m) | Nominal (m) | Deviation (m) |")
        lines.append("|---|---|---|---|---|")
        for a, b in pairs:
            measured = geodesic_distance(calibration[a], calibration[b])
            nominal = nominal_distance(a, b, field)
            lines.append(
                f"| {_LABELS[a]} | {_LABELS[b]} | {measured:.2f} | {nominal:.2f} | {measured - nominal:+.2f} |"
            )
        lines.append("")

    return "\n".join(lines)


def generate_markdown_report(
    calibration: CalibrationSet,
    output_path: Path,
    name: Optional[str] = None,
    field: FieldGeometry = DEFAULT_FIELD,
) -> None:
    Path(output_path).write_text(build_report(calibration, name, field), encoding="utf-8")
