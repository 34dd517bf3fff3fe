"""Public API for shipyard"""

from .exceptions import (
    ActivationError,
    CloneError,
    ConfigError,
    DeploymentCancelledError,
    ErrorKind,
    NoPreviousDeploymentError,
    PreconditionError,
    ReleaseNotFoundError,
    ScriptError,
    ShipyardError,
    StateError,
    TransportError,
)

__all__ = [
    'ActivationError',
    'CloneError',
    'ConfigError',
    'DeploymentCancelledError',
    'ErrorKind',
    'NoPreviousDeploymentError',
    'PreconditionError',
    'ReleaseNotFoundError',
    'ScriptError',
    'ShipyardError',
    'StateError',
    'TransportError',
]
