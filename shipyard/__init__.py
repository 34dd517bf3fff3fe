"""Shipyard - zero-downtime releases for Git-sourced applications.

Deploys Laravel apps, Node.js services and static sites to servers over SSH
using timestamped release directories and an atomically swapped ``current``
symlink, with instant rollback to any release still on the host.
"""

from .__version__ import __version__, __version_info__

# Core API
from .api.client import Shipyard

# Engine
from .core.release_manager import ReleaseManager
from .services.deployment_service import DeploymentOrchestrator
from .services.rollback_service import RollbackManager
from .executors import ExecutorFactory, LocalExecutor, RemoteExecutor, SSHExecutor

# Data models
from .models import (
    Application,
    ApplicationKind,
    CommandResult,
    Deployment,
    GitProvider,
    ReleaseId,
    ReleaseInfo,
    Server,
    ShipyardConfig,
    StepResult,
)

# Exceptions
from .api.exceptions import (
    ConfigError,
    PreconditionError,
    ScriptError,
    ShipyardError,
    StateError,
    TransportError,
)

__all__ = [
    "__version__",

    # Main classes
    "Shipyard",
    "ReleaseManager",
    "DeploymentOrchestrator",
    "RollbackManager",
    "ExecutorFactory",
    "LocalExecutor",
    "RemoteExecutor",
    "SSHExecutor",

    # Data models
    "Application",
    "ApplicationKind",
    "CommandResult",
    "Deployment",
    "GitProvider",
    "ReleaseId",
    "ReleaseInfo",
    "Server",
    "ShipyardConfig",
    "StepResult",

    # Exceptions
    "ConfigError",
    "PreconditionError",
    "ScriptError",
    "ShipyardError",
    "StateError",
    "TransportError",
]
