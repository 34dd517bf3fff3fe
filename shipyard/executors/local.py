# shipyard/executors/local.py
"""Executor running commands on the control host"""

import asyncio
import logging
import os
import signal
from pathlib import Path

import aiofiles

from ..constants import TIMEOUT_EXIT_CODE
from ..models.result import CommandResult
from .base import RemoteExecutor

logger = logging.getLogger(__name__)


class LocalExecutor(RemoteExecutor):
    """Runs commands through ``/bin/sh`` on this machine"""

    async def _do_connect(self) -> None:
        pass

    async def _do_disconnect(self) -> None:
        pass

    async def _do_execute(self, command: str, timeout: int) -> CommandResult:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=True,
        )

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            self._kill(process)
            await process.wait()
            return CommandResult(
                output=f"Command timed out after {timeout} seconds",
                exit_code=TIMEOUT_EXIT_CODE,
                timed_out=True,
            )

        return CommandResult(
            output=stdout.decode("utf-8", errors="replace"),
            exit_code=process.returncode,
        )

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        # The command runs in its own session; kill the whole group
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass

    async def _do_upload(self, content: str, remote_path: str) -> bool:
        path = Path(remote_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, 'w') as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Failed to write {remote_path}: {e}")
            return False
        return True
