# shipyard/models/deployment.py
"""Deployment record models"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..constants import DeploymentStatus, DeploymentType, LOG_TIMESTAMP_FORMAT
from .result import utcnow

logger = logging.getLogger(__name__)


@dataclass
class LogEvent:
    """Published to log subscribers for each appended line and on completion"""

    deployment_id: Optional[int]
    line: Optional[str] = None
    status: Optional[DeploymentStatus] = None

    @property
    def finished(self) -> bool:
        return self.status in (DeploymentStatus.SUCCESS, DeploymentStatus.FAILED)


LogListener = Callable[[LogEvent], None]


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Deployment:
    """One attempt to materialize (or roll back to) a release"""

    application: str
    id: Optional[int] = None
    type: DeploymentType = DeploymentType.DEPLOY
    status: DeploymentStatus = DeploymentStatus.PENDING
    log: str = ""
    release_id: Optional[str] = None
    release_path: Optional[str] = None
    commit_hash: Optional[str] = None
    commit_message: Optional[str] = None
    is_active: bool = False
    rollback_target_id: Optional[int] = None
    working_tree_dirty: bool = False
    created_at: datetime = field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    _listeners: List[LogListener] = field(default_factory=list, repr=False, compare=False)

    @property
    def is_rollback(self) -> bool:
        return self.type == DeploymentType.ROLLBACK

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds"""
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def subscribe(self, listener: LogListener) -> Callable[[], None]:
        """Attach a log listener; returns a callable that detaches it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, event: LogEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Log listener failed for deployment {self.id}: {e}")

    def append_log(self, message: str) -> None:
        """Append a timestamped line to the log"""
        line = f"[{utcnow().strftime(LOG_TIMESTAMP_FORMAT)}] {message}\n"
        self.log += line
        self._publish(LogEvent(self.id, line=line))

    def append_output(self, output: str) -> None:
        """Append raw command output verbatim"""
        if not output:
            return
        if not output.endswith("\n"):
            output += "\n"
        self.log += output
        self._publish(LogEvent(self.id, line=output))

    def mark_running(self) -> None:
        self.status = DeploymentStatus.RUNNING
        self.started_at = utcnow()

    def mark_success(self) -> None:
        self.status = DeploymentStatus.SUCCESS
        self.finished_at = utcnow()
        self._publish(LogEvent(self.id, status=self.status))

    def mark_failed(self) -> None:
        self.status = DeploymentStatus.FAILED
        self.finished_at = utcnow()
        self._publish(LogEvent(self.id, status=self.status))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "application": self.application,
            "type": self.type.value,
            "status": self.status.value,
            "log": self.log,
            "release_id": self.release_id,
            "release_path": self.release_path,
            "commit_hash": self.commit_hash,
            "commit_message": self.commit_message,
            "is_active": self.is_active,
            "rollback_target_id": self.rollback_target_id,
            "working_tree_dirty": self.working_tree_dirty,
            "created_at": _format_time(self.created_at),
            "started_at": _format_time(self.started_at),
            "finished_at": _format_time(self.finished_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Deployment':
        """Create from dictionary"""
        return cls(
            application=data["application"],
            id=data.get("id"),
            type=DeploymentType(data.get("type", "deploy")),
            status=DeploymentStatus(data.get("status", "pending")),
            log=data.get("log", ""),
            release_id=data.get("release_id"),
            release_path=data.get("release_path"),
            commit_hash=data.get("commit_hash"),
            commit_message=data.get("commit_message"),
            is_active=bool(data.get("is_active", False)),
            rollback_target_id=data.get("rollback_target_id"),
            working_tree_dirty=bool(data.get("working_tree_dirty", False)),
            created_at=_parse_time(data.get("created_at")) or utcnow(),
            started_at=_parse_time(data.get("started_at")),
            finished_at=_parse_time(data.get("finished_at")),
        )
