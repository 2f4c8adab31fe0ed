"""Error kinds raised or recorded by the tracking subsystem.

None of these are meant to escape to the host application: the tracker and
the sampler record them as status text, the profile store degrades to an
empty list, and only the batch mapper (used by the CLI) raises.
"""


class PitchTrackError(Exception):
    """Base class for all pitchtrack errors."""


class SensorUnavailable(PitchTrackError):
    """No geodetic position source is available."""

    def __init__(self, message: str = "Geolocation not supported"):
        super().__init__(message)


class SignalLost(PitchTrackError):
    """A one-shot query or a subscription delivery failed."""

    def __init__(self, message: str = "GPS signal lost"):
        super().__init__(message)


class NoCalibrationData(PitchTrackError):
    """A calibration session finished without a single successful fix."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No GPS data received while calibrating '{key}'")


class InsufficientFrame(PitchTrackError):
    """The calibration set does not yield a reference frame."""

    def __init__(self, message: str = "Calibration needs center, center+bottomMid or spotLeft+spotRight"):
        super().__init__(message)


class PersistenceCorrupt(PitchTrackError):
    """The stored profile blob could not be parsed."""


class UnknownProfile(PitchTrackError, KeyError):
    """No saved profile carries the requested id."""

    def __init__(self, profile_id: int):
        self.profile_id = profile_id
        super().__init__(profile_id)

    def __str__(self) -> str:
        return f"No profile with id {self.profile_id}"
