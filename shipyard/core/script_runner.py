# shipyard/core/script_runner.py
"""Runs multi-line scripts on a server through a temporary file"""

import logging
import uuid

from ..api.exceptions import ScriptError, TransportError
from ..constants import PROBE_TIMEOUT, REMOTE_TMP_DIR, SCRIPT_TIMEOUT
from ..executors.base import RemoteExecutor
from ..models.application import Application
from ..models.deployment import Deployment
from ..models.result import CommandResult
from ..utils.shell import quote
from .git_commands import wrap_script_with_credentials

logger = logging.getLogger(__name__)


class ScriptRunner:
    """Uploads a script to the server, runs it with bash and removes it"""

    def __init__(self, tmp_dir: str = REMOTE_TMP_DIR):
        self.tmp_dir = tmp_dir.rstrip("/")

    def temp_path(self, prefix: str, application: Application) -> str:
        return f"{self.tmp_dir}/{prefix}-{application.slug}-{uuid.uuid4().hex[:12]}.sh"

    async def run_script(self,
                         executor: RemoteExecutor,
                         script: str,
                         script_path: str,
                         timeout: int = SCRIPT_TIMEOUT) -> CommandResult:
        """
        Upload and execute a script, always removing it afterwards

        Args:
            executor: Connected executor
            script: Script text
            script_path: Temporary path on the server
            timeout: Seconds allowed for the script

        Returns:
            Command result of the script run

        Raises:
            TransportError: If the upload fails
        """
        if not await executor.upload_content(script, script_path):
            raise TransportError(f"Failed to upload script to {script_path}")

        try:
            await executor.execute(f"chmod +x {quote(script_path)}", PROBE_TIMEOUT)
            return await executor.execute(f"bash {quote(script_path)} 2>&1", timeout)
        finally:
            await executor.execute(f"rm -f {quote(script_path)}", PROBE_TIMEOUT)

    async def run_deploy_script(self,
                                executor: RemoteExecutor,
                                application: Application,
                                deployment: Deployment,
                                target_path: str) -> CommandResult:
        """
        Run the application's deploy script in ``target_path``

        Every non-empty, non-comment line is echoed to the deployment log before
        execution; the combined output is appended verbatim afterwards.

        Raises:
            ScriptError: If the script exits non-zero or times out
        """
        script = application.resolve_deploy_script(target_path)

        deployment.append_log("Running deployment script...")
        deployment.append_log("---")
        for line in script.splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                deployment.append_log(f"> {stripped}")

        if not script.endswith("\n"):
            script += "\n"
        script = wrap_script_with_credentials(application.git_provider, script)

        logger.info(f"Running deploy script for {application.name} in {target_path}")
        result = await self.run_script(
            executor, script, self.temp_path("deploy", application), SCRIPT_TIMEOUT)

        deployment.append_log("---")
        deployment.append_output(result.output)

        if not result.success:
            raise ScriptError(
                f"Deployment script failed with exit code: {result.exit_code}",
                exit_code=result.exit_code,
                output=result.output,
            )

        deployment.append_log("---")
        return result
