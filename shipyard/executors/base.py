# shipyard/executors/base.py
"""Remote executor abstract base class"""

import logging
from abc import ABC, abstractmethod

from ..api.exceptions import TransportError
from ..constants import DEFAULT_COMMAND_TIMEOUT
from ..models.result import CommandResult
from ..models.server import Server

logger = logging.getLogger(__name__)


class RemoteExecutor(ABC):
    """Session handle for running commands on one server.

    A new executor is created per run; it must be connected before
    ``execute``/``upload_content`` and disconnected on every exit path,
    which ``async with`` guarantees.
    """

    def __init__(self, server: Server):
        """
        Initialize executor

        Args:
            server: Target server
        """
        self.server = server
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Open the session

        Raises:
            TransportError: If the host is unreachable or rejects authentication
        """
        if not self._connected:
            logger.debug(f"Connecting to {self.server.display_name}")
            await self._do_connect()
            self._connected = True

    async def disconnect(self) -> None:
        """Close the session; safe to call repeatedly"""
        if self._connected:
            try:
                await self._do_disconnect()
            finally:
                self._connected = False
                logger.debug(f"Disconnected from {self.server.display_name}")

    async def execute(self, command: str, timeout: int = DEFAULT_COMMAND_TIMEOUT) -> CommandResult:
        """
        Run a shell command

        Args:
            command: Shell command line
            timeout: Seconds before the command is abandoned

        Returns:
            Combined output and exit code; a timeout yields exit code 124
        """
        self._ensure_connected()
        logger.debug(f"[{self.server.name}] $ {command}")
        result = await self._do_execute(command, timeout)
        if not result.success:
            logger.debug(f"[{self.server.name}] exit {result.exit_code}"
                         f"{' (timed out)' if result.timed_out else ''}")
        return result

    async def upload_content(self, content: str, remote_path: str) -> bool:
        """
        Write text to a file on the server

        Args:
            content: File contents
            remote_path: Absolute destination path

        Returns:
            True if successful
        """
        self._ensure_connected()
        logger.debug(f"[{self.server.name}] upload {len(content)} bytes to {remote_path}")
        return await self._do_upload(content, remote_path)

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise TransportError(f"Not connected to {self.server.display_name}")

    @abstractmethod
    async def _do_connect(self) -> None:
        pass

    @abstractmethod
    async def _do_disconnect(self) -> None:
        pass

    @abstractmethod
    async def _do_execute(self, command: str, timeout: int) -> CommandResult:
        pass

    @abstractmethod
    async def _do_upload(self, content: str, remote_path: str) -> bool:
        pass

    async def __aenter__(self) -> 'RemoteExecutor':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
