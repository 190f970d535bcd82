"""
Profile Persistence

Read and write the entity list and volume of a named profile. The engine
only talks to the ProfileRepository protocol; storage is up to the host.

Persisted format (one JSON document per profile):

    {"version": 1, "volume": 0.0,
     "entities": [{"id": ..., "frequency": ..., "gain": ..., "q": ..., "type": ...}]}

Malformed entity records are skipped, a malformed or missing profile loads
as an empty one.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, Union
import json
import logging
import re

from .entities import Band, GAIN_MIN, GAIN_MAX, clamp
from .timing import Clock, Debouncer

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


@dataclass
class ProfileData:
    """Entities and output volume of one profile."""
    entities: list[Band] = field(default_factory=list)
    volume: float = 0.0

    def to_dict(self) -> dict:
        return {
            "version": FORMAT_VERSION,
            "volume": self.volume,
            "entities": [entity.to_dict() for entity in self.entities],
        }

    @classmethod
    def from_dict(cls, data) -> "ProfileData":
        """
        Tolerant parse of a persisted profile.

        Records that cannot be parsed are skipped with a warning.
        """
        if not isinstance(data, dict):
            raise ValueError("Profile document must be an object")

        entities = []
        seen = set()
        records = data.get("entities", data.get("bands", []))
        if not isinstance(records, list):
            records = []
        for index, record in enumerate(records):
            try:
                entity = Band.from_dict(record, default_id=f"entity-{index}")
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed entity record %d: %s", index, e)
                continue
            if entity.id in seen:
                logger.warning("Skipping duplicate entity id %s", entity.id)
                continue
            seen.add(entity.id)
            entities.append(entity)

        try:
            volume = clamp(float(data.get("volume", 0.0)), GAIN_MIN, GAIN_MAX)
        except (TypeError, ValueError):
            volume = 0.0
        return cls(entities, volume)


class ProfileRepository(Protocol):
    def load(self, profile_id: str) -> Optional[ProfileData]:
        ...

    def save(self, profile_id: str, data: ProfileData) -> None:
        ...


class InMemoryProfileRepository:
    """Dictionary-backed repository. Stores copies, never live entities."""

    def __init__(self):
        self._profiles: dict[str, dict] = {}
        self.save_count = 0

    def load(self, profile_id: str) -> Optional[ProfileData]:
        document = self._profiles.get(profile_id)
        if document is None:
            return None
        return ProfileData.from_dict(document)

    def save(self, profile_id: str, data: ProfileData) -> None:
        self._profiles[profile_id] = data.to_dict()
        self.save_count += 1

    def __contains__(self, profile_id) -> bool:
        return profile_id in self._profiles


_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]+")


def _atomic_write_json(path: Path, payload: dict) -> None:
    tmp = path.with_suffix(".tmp")
    with tmp.open("w") as f:
        json.dump(payload, f, indent=2)
    tmp.replace(path)


class JsonProfileRepository:
    """
    One JSON file per profile inside a directory.

    Raises:
        OSError: From save() when the file cannot be written
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, profile_id: str) -> Path:
        name = _SAFE_NAME.sub("_", profile_id).strip("._") or "default"
        return self.directory / f"{name}.json"

    def load(self, profile_id: str) -> Optional[ProfileData]:
        path = self.path_for(profile_id)
        if not path.exists():
            return None
        with path.open("r") as f:
            document = json.load(f)
        return ProfileData.from_dict(document)

    def save(self, profile_id: str, data: ProfileData) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        _atomic_write_json(self.path_for(profile_id), data.to_dict())


def load_profile_safe(repository: ProfileRepository, profile_id: str) -> ProfileData:
    """
    Load a profile, never raising.

    Missing or unreadable profiles give an empty ProfileData.
    """
    try:
        data = repository.load(profile_id)
    except (OSError, ValueError) as e:
        logger.warning("Could not load profile %s: %s", profile_id, e)
        return ProfileData()
    if data is None:
        logger.info("Profile %s not found, starting empty", profile_id)
        return ProfileData()
    return data


class ProfileCommitter:
    """
    Debounced writer of the current profile.

    schedule() is called on every change; the write happens once the
    changes stop for delay seconds, or right away on flush().
    """

    def __init__(
        self,
        repository: ProfileRepository,
        profile_id: str,
        snapshot: Callable[[], ProfileData],
        clock: Clock,
        delay: float = 0.05,
    ):
        self.repository = repository
        self.profile_id = profile_id
        self._snapshot = snapshot
        self._debouncer = Debouncer(delay, clock)

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def schedule(self) -> None:
        self._debouncer.call(self._commit)

    def poll(self) -> bool:
        return self._debouncer.poll()

    def flush(self) -> bool:
        return self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()

    def _commit(self) -> None:
        data = self._snapshot()
        try:
            self.repository.save(self.profile_id, data)
        except OSError as e:
            logger.error("Failed to save profile %s: %s", self.profile_id, e)
            return
        logger.debug("Saved profile %s (%d entities)", self.profile_id, len(data.entities))
