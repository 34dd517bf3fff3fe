"""Release identifier and release listing models"""

import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

RELEASE_ID_FORMAT = "%Y%m%d%H%M%S%f"
RELEASE_ID_PATTERN = re.compile(r"^\d{20}$")


@dataclass(frozen=True, order=True)
class ReleaseId:
    """Release identifier backed by a UTC timestamp with microsecond precision.

    The rendered token is fixed-width (``YYYYMMDDHHMMSSffffff``), so ordering
    instances and sorting their string forms lexicographically agree.
    """

    moment: datetime

    def __post_init__(self):
        if self.moment.tzinfo is None:
            raise ValueError("ReleaseId requires a timezone-aware timestamp")
        if self.moment.utcoffset() != timedelta(0):
            object.__setattr__(self, "moment", self.moment.astimezone(timezone.utc))

    def __str__(self) -> str:
        return self.moment.strftime(RELEASE_ID_FORMAT)

    @classmethod
    def parse(cls, value: str) -> 'ReleaseId':
        """Parse a rendered release token

        Raises:
            ValueError: If the value is not a release token
        """
        value = value.strip().rstrip("/")
        if not RELEASE_ID_PATTERN.match(value):
            raise ValueError(f"Invalid release id: {value!r}")
        moment = datetime.strptime(value, RELEASE_ID_FORMAT).replace(tzinfo=timezone.utc)
        return cls(moment)

    @classmethod
    def try_parse(cls, value: Optional[str]) -> Optional['ReleaseId']:
        if not value:
            return None
        try:
            return cls.parse(value)
        except ValueError:
            return None

    @staticmethod
    def newest_first(values: Iterable['ReleaseId']) -> List['ReleaseId']:
        return sorted(values, reverse=True)


class ReleaseIdGenerator:
    """Allocates strictly increasing release ids from the wall clock.

    When the clock has not advanced (or stepped backwards) since the last
    allocation, the previous id plus one microsecond is used instead.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last: Optional[ReleaseId] = None
        self._lock = threading.Lock()

    def next(self, after: Optional[ReleaseId] = None) -> ReleaseId:
        """Allocate the next id, strictly greater than ``after`` when given"""
        with self._lock:
            candidate = ReleaseId(self._clock())
            floor = max((f for f in (self._last, after) if f is not None), default=None)
            if floor is not None and candidate <= floor:
                candidate = ReleaseId(floor.moment + timedelta(microseconds=1))
            self._last = candidate
            return candidate


@dataclass
class ReleaseInfo:
    """A release directory present on the host, for operator display"""

    release_id: str
    deployment_id: Optional[int] = None
    is_active: bool = False
    commit_hash: Optional[str] = None
    commit_message: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "release_id": self.release_id,
            "deployment_id": self.deployment_id,
            "is_active": self.is_active,
            "commit_hash": self.commit_hash,
            "commit_message": self.commit_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
