# shipyard/services/deployment_service.py
"""Deployment orchestration service"""

import asyncio
import logging
from typing import Any, Optional

from ..api.exceptions import (
    DeploymentCancelledError,
    ErrorKind,
    ScriptError,
    ShipyardError,
)
from ..constants import ApplicationStatus, PROBE_TIMEOUT, TIMEOUT_EXIT_CODE
from ..core.git_commands import set_remote_url_command
from ..core.release_manager import ReleaseManager
from ..core.script_runner import ScriptRunner
from ..executors.base import RemoteExecutor
from ..executors.factory import ExecutorFactory
from ..models.application import Application
from ..models.deployment import Deployment
from ..models.result import StepResult, step
from ..storage.base import DeploymentStore
from ..utils.async_utils import is_cancelled
from ..utils.shell import quote, remote_dirname

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """Drives one deployment from ``pending`` to ``success`` or ``failed``.

    Steps run strictly in order over a single executor created for the run.
    Any failure leaves ``current`` where it was, logs ``ERROR: <message>``,
    marks the deployment and application failed, and is re-raised.
    """

    def __init__(self,
                 store: DeploymentStore,
                 executor_factory=ExecutorFactory,
                 release_manager: Optional[ReleaseManager] = None,
                 script_runner: Optional[ScriptRunner] = None):
        self.store = store
        self.executor_factory = executor_factory
        self.script_runner = script_runner or ScriptRunner()
        self.release_manager = release_manager or ReleaseManager(self.script_runner)

    async def run(self,
                  deployment: Deployment,
                  application: Application,
                  cancel_event: Optional[asyncio.Event] = None) -> Deployment:
        """
        Run a pending deployment

        Args:
            deployment: Record in ``pending`` state
            application: Application being deployed
            cancel_event: Optional flag checked between steps before activation

        Returns:
            The deployment, marked ``success``

        Raises:
            ShipyardError: Any step failure, after the deployment was marked failed
        """
        if deployment.id is None:
            await self.store.create(deployment)

        await self._set_application_status(application, ApplicationStatus.DEPLOYING)
        deployment.mark_running()
        await self.store.save(deployment)

        logger.info(f"Deployment #{deployment.id} of {application.name} started "
                    f"({application.strategy.value})")

        executor = self.executor_factory.create(application.server)
        try:
            await executor.connect()
            if application.uses_atomic_deployments:
                await self._run_atomic(executor, application, deployment, cancel_event)
            else:
                await self._run_in_place(executor, application, deployment, cancel_event)
        except ShipyardError as e:
            await self._fail(deployment, application, e)
            raise
        except asyncio.CancelledError:
            await self._fail(deployment, application, DeploymentCancelledError("Deployment task cancelled"))
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in deployment #{deployment.id}")
            await self._fail(deployment, application, e)
            raise
        finally:
            await executor.disconnect()

        deployment.append_log("Deployment completed successfully!")
        if application.uses_atomic_deployments:
            await self.store.mark_active(deployment)
        deployment.mark_success()
        await self.store.save(deployment)
        await self._set_application_status(application, ApplicationStatus.ACTIVE)

        logger.info(f"Deployment #{deployment.id} of {application.name} succeeded")
        return deployment

    async def _run_atomic(self,
                          executor: RemoteExecutor,
                          application: Application,
                          deployment: Deployment,
                          cancel_event: Optional[asyncio.Event]) -> None:
        rm = self.release_manager

        await self._check(deployment, await rm.initialize_structure(executor, application, deployment))
        self._check_cancelled(cancel_event)

        release_path = await self._check(
            deployment, await rm.create_release(executor, application, deployment))
        self._check_cancelled(cancel_event)

        await self._check(
            deployment, await rm.upload_env_file(executor, application, deployment, release_path))
        await self._check(
            deployment, await rm.link_shared_paths(executor, application, deployment, release_path))
        self._check_cancelled(cancel_event)

        await self._check(
            deployment, await self._deploy_script(executor, application, deployment, release_path))
        await self._check(
            deployment, await rm.set_permissions(executor, application, deployment, release_path))
        self._check_cancelled(cancel_event)

        # Activation and retention always run to completion once reached
        await self._check(
            deployment, await rm.activate_release(executor, application, deployment, release_path))
        await self._check(
            deployment, await rm.cleanup_old_releases(executor, application, deployment))

    async def _run_in_place(self,
                            executor: RemoteExecutor,
                            application: Application,
                            deployment: Deployment,
                            cancel_event: Optional[asyncio.Event]) -> None:
        rm = self.release_manager
        path = application.deploy_path

        deployment.append_log(f"Ensuring deploy directory exists: {path}")
        result = await executor.execute(f"mkdir -p {quote(remote_dirname(path))}", PROBE_TIMEOUT)
        if not result.success:
            raise ScriptError(f"Failed to create deploy directory: {result.output.strip()}",
                              result.exit_code, result.output)

        probe = await executor.execute(f"test -d {quote(path + '/.git')} && echo exists", PROBE_TIMEOUT)
        if "exists" not in probe.output:
            await rm.clone_repository(executor, application, deployment, path)
        elif application.git_provider:
            result = await executor.execute(
                set_remote_url_command(application.git_provider, application.repository_url, path),
                PROBE_TIMEOUT)
            if not result.success:
                deployment.append_log(f"WARNING: could not update origin url: {result.output.strip()}")

        await self._check(deployment, await rm.upload_env_file(executor, application, deployment, path))
        self._check_cancelled(cancel_event)

        try:
            deployment.working_tree_dirty = True
            await self._check(deployment, await self._deploy_script(executor, application, deployment, path))
            await self._check(deployment, await rm.set_permissions(executor, application, deployment, path))
        except BaseException:
            deployment.append_log(
                "WARNING: in-place deployment failed after the deploy script started; "
                f"the working tree at {path} may be partially updated and cannot be rolled back.")
            raise
        deployment.working_tree_dirty = False

    @step
    async def _deploy_script(self,
                             executor: RemoteExecutor,
                             application: Application,
                             deployment: Deployment,
                             target_path: str):
        return await self.script_runner.run_deploy_script(executor, application, deployment, target_path)

    async def _check(self, deployment: Deployment, result: StepResult) -> Any:
        """Persist progress and return the step value, raising its error on failure"""
        await self.store.save(deployment)
        return result.unwrap()

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if is_cancelled(cancel_event):
            raise DeploymentCancelledError()

    async def _fail(self, deployment: Deployment, application: Application, error: Exception) -> None:
        message = str(error)
        kind = getattr(error, "kind", None)

        if kind == ErrorKind.TRANSPORT:
            deployment.append_log(f"Could not talk to {application.server.display_name}.")
        elif kind == ErrorKind.SCRIPT and getattr(error, "exit_code", None) == TIMEOUT_EXIT_CODE:
            deployment.append_log("Command timed out.")
        elif kind == ErrorKind.CANCELLED:
            deployment.append_log("Deployment cancelled before activation; current release unchanged.")

        deployment.append_log(f"ERROR: {message}")
        deployment.mark_failed()
        await self.store.save(deployment)
        await self._set_application_status(application, ApplicationStatus.FAILED)

        logger.error(f"Deployment #{deployment.id} of {application.name} failed: {message}")

    async def _set_application_status(self, application: Application, status: ApplicationStatus) -> None:
        application.status = status
        await self.store.save_application_status(application.name, status)
