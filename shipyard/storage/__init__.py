"""Deployment record storage"""

from .base import DeploymentStore
from .factory import StoreFactory
from .json_file import JsonDeploymentStore
from .memory import MemoryDeploymentStore

__all__ = [
    'DeploymentStore',
    'StoreFactory',
    'JsonDeploymentStore',
    'MemoryDeploymentStore',
]
