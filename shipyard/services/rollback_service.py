# shipyard/services/rollback_service.py
"""Rollback service"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..api.exceptions import (
    DeploymentCancelledError,
    NoPreviousDeploymentError,
    PreconditionError,
    ShipyardError,
    StateError,
    TransportError,
)
from ..constants import ApplicationStatus, DeploymentStatus, DeploymentType, TASK_TIMEOUT
from ..core.release_manager import ReleaseManager
from ..executors.base import RemoteExecutor
from ..executors.factory import ExecutorFactory
from ..models.application import Application
from ..models.deployment import Deployment
from ..models.release import ReleaseInfo
from ..storage.base import DeploymentStore
from ..utils.shell import remote_basename

logger = logging.getLogger(__name__)


class RollbackManager:
    """Re-points ``current`` at the release of an earlier deployment"""

    def __init__(self,
                 store: DeploymentStore,
                 executor_factory=ExecutorFactory,
                 release_manager: Optional[ReleaseManager] = None):
        self.store = store
        self.executor_factory = executor_factory
        self.release_manager = release_manager or ReleaseManager()

    async def rollback(self,
                       application: Application,
                       target: Deployment,
                       rollback_deployment: Deployment) -> Deployment:
        """
        Roll back to the release of ``target``

        Args:
            application: Atomic application
            target: Earlier deployment whose release becomes live again
            rollback_deployment: Pending record tracking this rollback

        Returns:
            The rollback record, marked ``success`` and active

        Raises:
            StateError: If the application is in-place or the target has no release path
            ReleaseNotFoundError: If the target release was removed from the host
        """
        rollback_deployment.type = DeploymentType.ROLLBACK
        rollback_deployment.rollback_target_id = target.id
        if rollback_deployment.id is None:
            await self.store.create(rollback_deployment)

        try:
            if not application.uses_atomic_deployments:
                raise StateError("Rollback is only supported for atomic deployments.")
            if not target.release_path:
                raise StateError("Target deployment does not have a release path.")
        except StateError as e:
            await self._fail(rollback_deployment, application, e, update_application=False)
            raise

        await self._set_application_status(application, ApplicationStatus.DEPLOYING)
        rollback_deployment.mark_running()
        await self.store.save(rollback_deployment)

        release_id = target.release_id or remote_basename(target.release_path)
        logger.info(f"Rolling back {application.name} to release {release_id}")

        executor = self.executor_factory.create(application.server)
        try:
            await executor.connect()

            rollback_deployment.append_log(f"Verifying release directory exists: {target.release_path}")
            (await self.release_manager.verify_release(
                executor, application, target.release_path)).unwrap()
            rollback_deployment.append_log("Release directory verified.")

            rollback_deployment.append_log(f"Rolling back to release: {release_id}")
            (await self.release_manager.activate_release(
                executor, application, rollback_deployment, target.release_path)).unwrap()
            await self.store.save(rollback_deployment)

            await self._run_post_rollback_tasks(executor, application, rollback_deployment)
        except ShipyardError as e:
            await self._fail(rollback_deployment, application, e)
            raise
        except asyncio.CancelledError:
            await self._fail(rollback_deployment, application, DeploymentCancelledError("Rollback task cancelled"))
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in rollback #{rollback_deployment.id}")
            await self._fail(rollback_deployment, application, e)
            raise
        finally:
            await executor.disconnect()

        rollback_deployment.release_path = target.release_path
        rollback_deployment.release_id = release_id
        rollback_deployment.commit_hash = target.commit_hash
        rollback_deployment.commit_message = target.commit_message
        rollback_deployment.append_log("Rollback completed successfully!")
        await self.store.mark_active(rollback_deployment)
        rollback_deployment.mark_success()
        await self.store.save(rollback_deployment)
        await self._set_application_status(application, ApplicationStatus.ACTIVE)

        logger.info(f"Rollback #{rollback_deployment.id} of {application.name} succeeded")
        return rollback_deployment

    async def rollback_to_previous(self,
                                   application: Application,
                                   rollback_deployment: Deployment) -> Deployment:
        """
        Roll back to the newest successful deployment before the active one

        Raises:
            PreconditionError: If nothing is active
            NoPreviousDeploymentError: If no earlier release is recorded
        """
        try:
            target = await self.find_previous(application, exclude_id=rollback_deployment.id)
        except PreconditionError as e:
            rollback_deployment.type = DeploymentType.ROLLBACK
            if rollback_deployment.id is None:
                await self.store.create(rollback_deployment)
            await self._fail(rollback_deployment, application, e, update_application=False)
            raise

        return await self.rollback(application, target, rollback_deployment)

    async def find_previous(self, application: Application,
                            exclude_id: Optional[int] = None) -> Deployment:
        """Select the rollback target for :meth:`rollback_to_previous`"""
        current = await self.store.active_deployment(application.name)
        if current is None:
            raise PreconditionError("No active deployment found.")

        for deployment in await self.store.list_for_application(application.name):
            if deployment.id in (current.id, exclude_id):
                continue
            if deployment.status != DeploymentStatus.SUCCESS or not deployment.release_path:
                continue
            if deployment.release_path == current.release_path:
                continue
            return deployment

        raise NoPreviousDeploymentError()

    async def get_available_releases(self, application: Application) -> List[ReleaseInfo]:
        """
        Releases still on the host, newest first, joined with their deployments

        Returns:
            Empty list for in-place applications
        """
        if not application.uses_atomic_deployments:
            return []

        async with self.executor_factory.create(application.server) as executor:
            release_ids = await self.release_manager.list_releases(executor, application)
            current = await self.release_manager.get_current_release_path(executor, application)

        active_name = remote_basename(current) if current else None
        by_release = await self._successful_by_release(application)

        releases = []
        for release_id in release_ids:
            name = str(release_id)
            deployment = by_release.get(name)
            releases.append(ReleaseInfo(
                release_id=name,
                deployment_id=deployment.id if deployment else None,
                is_active=name == active_name,
                commit_hash=deployment.commit_hash if deployment else None,
                commit_message=deployment.commit_message if deployment else None,
                created_at=deployment.created_at if deployment else release_id.moment,
            ))
        return releases

    async def _successful_by_release(self, application: Application) -> Dict[str, Deployment]:
        # The deploy that created a release wins over rollbacks that reused it
        by_release: Dict[str, Deployment] = {}
        for deployment in await self.store.list_for_application(application.name):
            if deployment.status != DeploymentStatus.SUCCESS or not deployment.release_id:
                continue
            known = by_release.get(deployment.release_id)
            if known is None or (known.is_rollback and not deployment.is_rollback):
                by_release[deployment.release_id] = deployment
        return by_release

    async def _run_post_rollback_tasks(self,
                                       executor: RemoteExecutor,
                                       application: Application,
                                       deployment: Deployment) -> None:
        commands = application.post_rollback_commands()
        if not commands:
            return

        deployment.append_log("Running post-rollback tasks...")
        for command in commands:
            deployment.append_log(f"> {command}")
            try:
                result = await executor.execute(f"{command} 2>&1", TASK_TIMEOUT)
            except TransportError as e:
                logger.warning(f"Post-rollback task failed on {application.name}: {e}")
                deployment.append_log(f"WARNING: {e}")
                continue
            deployment.append_output(result.output)
            if not result.success:
                deployment.append_log(f"WARNING: task exited with code {result.exit_code}")
        deployment.append_log("Post-rollback tasks completed.")

    async def _fail(self,
                    deployment: Deployment,
                    application: Application,
                    error: Exception,
                    update_application: bool = True) -> None:
        deployment.append_log(f"ERROR: {error}")
        deployment.mark_failed()
        await self.store.save(deployment)
        if update_application:
            await self._set_application_status(application, ApplicationStatus.FAILED)
        logger.error(f"Rollback #{deployment.id} of {application.name} failed: {error}")

    async def _set_application_status(self, application: Application, status: ApplicationStatus) -> None:
        application.status = status
        await self.store.save_application_status(application.name, status)
