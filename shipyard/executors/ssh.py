# shipyard/executors/ssh.py
"""SSH executor backed by paramiko"""

import asyncio
import io
import logging
import socket
from functools import partial
from typing import Optional

import paramiko

from ..api.exceptions import TransportError
from ..constants import TIMEOUT_EXIT_CODE
from ..models.result import CommandResult
from ..models.server import Server
from .base import RemoteExecutor

logger = logging.getLogger(__name__)

_KEY_CLASSES = (paramiko.RSAKey, paramiko.Ed25519Key, paramiko.ECDSAKey)


def load_private_key(key_text: str) -> paramiko.PKey:
    """
    Parse a private key, trying each supported key type

    Raises:
        TransportError: If the key cannot be parsed
    """
    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(key_text))
        except paramiko.SSHException:
            continue
    raise TransportError("Unsupported or invalid private key")


class SSHExecutor(RemoteExecutor):
    """Runs commands over SSH; blocking paramiko calls go to the default thread pool"""

    def __init__(self, server: Server):
        super().__init__(server)
        self._client: Optional[paramiko.SSHClient] = None

    async def _run_sync(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def _do_connect(self) -> None:
        await self._run_sync(self._connect_sync)

    def _connect_sync(self) -> None:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            key_text = self.server.load_private_key()
        except OSError as e:
            raise TransportError(f"Cannot read private key for {self.server.name}: {e}")

        connect_kwargs = {
            "hostname": self.server.host,
            "port": self.server.port,
            "username": self.server.username,
            "timeout": self.server.connect_timeout,
        }
        if key_text:
            connect_kwargs["pkey"] = load_private_key(key_text)

        try:
            client.connect(**connect_kwargs)
        except paramiko.AuthenticationException:
            client.close()
            raise TransportError(f"Authentication failed for {self.server.display_name}")
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise TransportError(f"Cannot connect to {self.server.display_name}: {e}")

        self._client = client

    async def _do_disconnect(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await self._run_sync(client.close)

    async def _do_execute(self, command: str, timeout: int) -> CommandResult:
        return await self._run_sync(self._execute_sync, command, timeout)

    def _execute_sync(self, command: str, timeout: int) -> CommandResult:
        try:
            stdin, stdout, stderr = self._client.exec_command(command, timeout=timeout)
        except paramiko.SSHException as e:
            raise TransportError(f"SSH channel failed on {self.server.name}: {e}")

        channel = stdout.channel
        # Merge stderr into stdout so output keeps its interleaving
        channel.set_combine_stderr(True)
        stdin.close()

        try:
            output = stdout.read().decode("utf-8", errors="replace")
            exit_code = channel.recv_exit_status()
        except socket.timeout:
            channel.close()
            return CommandResult(
                output=f"Command timed out after {timeout} seconds",
                exit_code=TIMEOUT_EXIT_CODE,
                timed_out=True,
            )

        return CommandResult(output=output, exit_code=exit_code)

    async def _do_upload(self, content: str, remote_path: str) -> bool:
        return await self._run_sync(self._upload_sync, content, remote_path)

    def _upload_sync(self, content: str, remote_path: str) -> bool:
        try:
            sftp = self._client.open_sftp()
            try:
                with sftp.file(remote_path, "w") as f:
                    f.write(content)
            finally:
                sftp.close()
        except (IOError, paramiko.SSHException) as e:
            logger.error(f"Upload to {self.server.name}:{remote_path} failed: {e}")
            return False
        return True
