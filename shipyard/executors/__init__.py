"""Remote command executors"""

from .base import RemoteExecutor
from .factory import ExecutorFactory
from .local import LocalExecutor
from .ssh import SSHExecutor

__all__ = [
    'RemoteExecutor',
    'ExecutorFactory',
    'LocalExecutor',
    'SSHExecutor',
]
