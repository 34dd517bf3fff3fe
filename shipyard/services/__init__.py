"""Service layer for shipyard"""

from .config_service import ConfigService
from .deployment_service import DeploymentOrchestrator
from .rollback_service import RollbackManager

__all__ = [
    'ConfigService',
    'DeploymentOrchestrator',
    'RollbackManager',
]
