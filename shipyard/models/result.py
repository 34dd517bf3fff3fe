"""Operation result models"""

import functools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from ..api.exceptions import ErrorKind, ShipyardError

T = TypeVar('T')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CommandResult:
    """Outcome of a single remote command"""

    output: str
    exit_code: int
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """A command succeeded when it exited with status 0"""
        return self.exit_code == 0 and not self.timed_out

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "output": self.output,
            "exit_code": self.exit_code,
            "success": self.success,
            "timed_out": self.timed_out,
        }


@dataclass
class StepResult(Generic[T]):
    """Result of one pipeline step: either a value or a typed error"""

    value: Optional[T] = None
    error: Optional[ShipyardError] = None
    start_time: datetime = field(default_factory=utcnow)
    end_time: Optional[datetime] = None

    @classmethod
    def success(cls, value: T = None) -> 'StepResult[T]':
        result = cls(value=value)
        result.complete()
        return result

    @classmethod
    def failure(cls, error: ShipyardError) -> 'StepResult[T]':
        result = cls(error=error)
        result.complete()
        return result

    @property
    def is_success(self) -> bool:
        """Check if step was successful"""
        return self.error is None

    @property
    def is_failed(self) -> bool:
        """Check if step failed"""
        return self.error is not None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @property
    def duration(self) -> Optional[float]:
        """Get step duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def complete(self) -> None:
        """Mark step as complete"""
        self.end_time = utcnow()

    def unwrap(self) -> T:
        """Return the value, raising the carried error if the step failed"""
        if self.error is not None:
            raise self.error
        return self.value


def step(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[StepResult[T]]]:
    """Turn an async step that raises ShipyardError into one returning StepResult"""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> StepResult[T]:
        started = utcnow()
        try:
            value = await func(*args, **kwargs)
        except ShipyardError as e:
            result = StepResult.failure(e)
        else:
            result = StepResult.success(value)
        result.start_time = started
        return result

    return wrapper
