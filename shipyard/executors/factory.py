# shipyard/executors/factory.py
"""Executor factory"""

from typing import Dict, Type

from ..models.server import Server
from .base import RemoteExecutor
from .local import LocalExecutor
from .ssh import SSHExecutor


class ExecutorFactory:
    """Factory for creating one executor per run"""

    _executors: Dict[str, Type[RemoteExecutor]] = {
        "local": LocalExecutor,
        "ssh": SSHExecutor,
    }

    @classmethod
    def register(cls, transport: str, executor_class: Type[RemoteExecutor]) -> None:
        """
        Register an executor class for a transport

        Args:
            transport: "local" or "ssh"
            executor_class: Executor implementation
        """
        if not issubclass(executor_class, RemoteExecutor):
            raise ValueError(f"{executor_class} must inherit from RemoteExecutor")
        cls._executors[transport] = executor_class

    @classmethod
    def create(cls, server: Server) -> RemoteExecutor:
        """Create a disconnected executor for the server"""
        transport = "local" if server.is_local else "ssh"
        return cls._executors[transport](server)
