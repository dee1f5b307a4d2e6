"""Per-player profiles: difficulty level, recent results and the saved match.

ProfileStore fixes what is read and written; where it lives is up to the
subclass. Names are compared after trimming surrounding whitespace.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from .difficulty import STREAK_SIZE, DifficultyController
from .rules import Status
from .session import Session


def normalize_name(name):
    return (name or "").strip()


def valid_name(name):
    return bool(normalize_name(name))


@dataclass
class PlayerProfile:
    level:   int                = 0
    streak:  List[Status]       = field(default_factory=list)
    session: Optional[Session]  = None

    def controller(self):
        return DifficultyController(self.level, self.streak)

    def absorb(self, controller):
        self.level  = controller.level
        self.streak = list(controller.streak)

    def to_record(self):
        return {
            "level":   self.level,
            "streak":  [s.value for s in self.streak],
            "session": self.session.to_dict() if self.session else None,
        }

    @classmethod
    def from_record(cls, data):
        session = data.get("session")
        return cls(
            level   = int(data.get("level", 0)),
            streak  = [Status(s) for s in data.get("streak", [])][-STREAK_SIZE:],
            session = Session.from_dict(session) if session else None,
        )


class ProfileStore(ABC):
    @abstractmethod
    def _get(self, key):
        """Return the stored record for a trimmed name, or None."""

    @abstractmethod
    def _put(self, key, record):
        ...

    @abstractmethod
    def _levels(self):
        """Yield (name, level) for every stored profile."""

    def load(self, name):
        record = self._get(normalize_name(name))
        return PlayerProfile.from_record(record) if record else PlayerProfile()

    def save(self, name, profile):
        self._put(normalize_name(name), profile.to_record())

    def list(self):
        return sorted(self._levels(), key=lambda p: (p[0].lower(), p[0]))


class MemoryProfileStore(ProfileStore):
    def __init__(self):
        self._records = {}

    def _get(self, key):
        return self._records.get(key)

    def _put(self, key, record):
        self._records[key] = record

    def _levels(self):
        return [(k, r["level"]) for k, r in self._records.items()]
