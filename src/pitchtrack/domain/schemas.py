from typing import List, Optional
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from pitchtrack.domain.types import CalibrationSet, GeodeticCoordinate, ReferenceKey
from pitchtrack.errors import PersistenceCorrupt


class GpsCoord(BaseModel):
    lat: float
    lon: float

    def to_coordinate(self) -> GeodeticCoordinate:
        return GeodeticCoordinate(latitude=self.lat, longitude=self.lon)

    @classmethod
    def from_coordinate(cls, coord: GeodeticCoordinate) -> "GpsCoord":
        return cls(lat=coord.latitude, lon=coord.longitude)


class CalibrationData(BaseModel):
    center: Optional[GpsCoord] = None
    bottom_mid: Optional[GpsCoord] = Field(default=None, alias="bottomMid")
    spot_left: Optional[GpsCoord] = Field(default=None, alias="spotLeft")
    spot_right: Optional[GpsCoord] = Field(default=None, alias="spotRight")

    model_config = {"populate_by_name": True}

    def to_calibration_set(self) -> CalibrationSet:
        points = {}
        for key in ReferenceKey:
            value = getattr(self, _FIELD_NAMES[key])
            if value is not None:
                points[key] = value.to_coordinate()
        return CalibrationSet(points)

    @classmethod
    def from_calibration_set(cls, calibration: CalibrationSet) -> "CalibrationData":
        values = {
            _FIELD_NAMES[key]: GpsCoord.from_coordinate(coord)
            for key, coord in calibration.items()
        }
        return cls(**values)


_FIELD_NAMES = {
    ReferenceKey.CENTER: "center",
    ReferenceKey.BOTTOM_MID: "bottom_mid",
    ReferenceKey.SPOT_LEFT: "spot_left",
    ReferenceKey.SPOT_RIGHT: "spot_right",
}


class CalibrationProfile(BaseModel):
    id: int
    name: str
    data: CalibrationData


_PROFILE_LIST = TypeAdapter(List[CalibrationProfile])


def encode_profiles(profiles: List[CalibrationProfile]) -> str:
    """Serialize the whole profile list; unset reference points are omitted."""
    return _PROFILE_LIST.dump_json(profiles, by_alias=True, exclude_none=True).decode("utf-8")


def decode_profiles(blob: str) -> List[CalibrationProfile]:
    try:
        return _PROFILE_LIST.validate_json(blob)
    except ValidationError as e:
        raise PersistenceCorrupt(f"Stored profiles could not be parsed: {e.error_count()} error(s)") from e
