"""
Named calibration profiles, persisted as one blob in a key-value storage.

Every mutation rewrites the whole list. A blob that cannot be parsed is
treated exactly like "no profiles saved".
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol

from pitchtrack.domain.schemas import CalibrationData, CalibrationProfile, decode_profiles, encode_profiles
from pitchtrack.domain.types import CalibrationSet
from pitchtrack.errors import PersistenceCorrupt, UnknownProfile
from pitchtrack.models import ProfileConfig

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class JsonFileStorage:
    """All keys live in a single JSON object on disk: {"key": "value", ...}."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read storage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold a JSON object, ignoring it", self.path)
            return {}
        return data

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write beside the target and swap it in, so an interrupted write
        # never leaves a half-written file behind.
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class ProfileStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        config: ProfileConfig = ProfileConfig(),
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.config = config
        self.clock = clock
        self._profiles: List[CalibrationProfile] = self._read()

    def _read(self) -> List[CalibrationProfile]:
        blob = self.storage.get_item(self.config.storage_key)
        if blob is None:
            return []
        try:
            return decode_profiles(blob)
        except PersistenceCorrupt as e:
            logger.warning("%s; starting with an empty profile list", e)
            return []

    def _write(self) -> None:
        self.storage.set_item(self.config.storage_key, encode_profiles(self._profiles))

    @property
    def profiles(self) -> List[CalibrationProfile]:
        return list(self._profiles)

    @property
    def is_full(self) -> bool:
        return len(self._profiles) >= self.config.max_profiles

    def _next_id(self) -> int:
        candidate = int(self.clock() * 1000)
        if self._profiles:
            candidate = max(candidate, max(p.id for p in self._profiles) + 1)
        return candidate

    def save(self, name: str, calibration: CalibrationSet) -> CalibrationProfile:
        """Snapshot `calibration` under a new id and append it to the stored list."""
        name = name.strip()
        if not name:
            raise ValueError("Profile name must not be blank")
        if self.is_full:
            raise ValueError(f"At most {self.config.max_profiles} profiles can be saved")

        profile = CalibrationProfile(
            id=self._next_id(),
            name=name,
            data=CalibrationData.from_calibration_set(calibration),
        )
        self._profiles.append(profile)
        self._write()
        logger.info("Saved profile %d '%s' (%d points)", profile.id, name, len(calibration))
        return profile

    def delete(self, profile_id: int) -> None:
        remaining = [p for p in self._profiles if p.id != profile_id]
        if len(remaining) == len(self._profiles):
            raise UnknownProfile(profile_id)
        self._profiles = remaining
        self._write()
        logger.info("Deleted profile %d", profile_id)

    def get(self, profile_id: int) -> CalibrationProfile:
        for p in self._profiles:
            if p.id == profile_id:
                return p
        raise UnknownProfile(profile_id)

    def load(self, profile_id: int) -> CalibrationSet:
        """Calibration set stored under `profile_id`, as a fresh object."""
        return self.get(profile_id).data.to_calibration_set()
