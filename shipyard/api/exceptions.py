"""Exception definitions for shipyard"""

from enum import Enum
from typing import Optional

from ..constants import ErrorCode


class ErrorKind(Enum):
    """Failure categories surfaced by the release engine"""
    TRANSPORT = "transport"
    PRECONDITION = "precondition"
    SCRIPT = "script"
    STATE = "state"
    CONFIG = "config"
    CANCELLED = "cancelled"


class ShipyardError(Exception):
    """Base exception for shipyard"""

    kind = ErrorKind.STATE

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code

    @property
    def message(self) -> str:
        return str(self)


class TransportError(ShipyardError):
    """Host unreachable, authentication rejected or upload failed"""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.TRANSPORT_FAILED)


class PreconditionError(ShipyardError):
    """A required remote or recorded state is missing"""

    kind = ErrorKind.PRECONDITION

    def __init__(self, message: str, error_code: str = ErrorCode.PRECONDITION_FAILED):
        super().__init__(message, error_code)


class ReleaseNotFoundError(PreconditionError):
    """Release directory no longer exists on the host"""

    def __init__(self, release_path: str):
        super().__init__(f"Release directory not found: {release_path}", ErrorCode.RELEASE_NOT_FOUND)
        self.release_path = release_path


class NoPreviousDeploymentError(PreconditionError):
    """No earlier successful release to roll back to"""

    def __init__(self, message: str = "No previous deployment available for rollback."):
        super().__init__(message, ErrorCode.NO_PREVIOUS_DEPLOYMENT)


class ScriptError(ShipyardError):
    """Remote command exited non-zero or timed out"""

    kind = ErrorKind.SCRIPT

    def __init__(self, message: str, exit_code: Optional[int] = None, output: str = "",
                 error_code: str = ErrorCode.COMMAND_FAILED):
        super().__init__(message, error_code)
        self.exit_code = exit_code
        self.output = output


class CloneError(ScriptError):
    """Repository clone failed"""

    def __init__(self, output: str, exit_code: Optional[int] = None):
        super().__init__(f"Git clone failed: {output}", exit_code, output, ErrorCode.CLONE_FAILED)


class ActivationError(ScriptError):
    """The current symlink could not be swapped"""

    def __init__(self, output: str, exit_code: Optional[int] = None):
        super().__init__(f"Failed to activate release: {output}", exit_code, output,
                         ErrorCode.ACTIVATION_FAILED)


class StateError(ShipyardError):
    """Operation requested in a state that does not allow it"""

    kind = ErrorKind.STATE

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INVALID_STATE)


class ConfigError(ShipyardError):
    """Configuration error"""

    kind = ErrorKind.CONFIG

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class DeploymentCancelledError(ShipyardError):
    """Run cancelled between steps, before activation"""

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Deployment cancelled before activation"):
        super().__init__(message, ErrorCode.CANCELLED)
