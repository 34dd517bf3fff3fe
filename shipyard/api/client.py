"""Shipyard API for deployment and rollback operations"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..constants import DeploymentStatus, DeploymentType
from ..core.release_manager import ReleaseManager
from ..executors.factory import ExecutorFactory
from ..models.application import Application
from ..models.config import ShipyardConfig
from ..models.deployment import Deployment, LogListener
from ..models.release import ReleaseInfo
from ..services.config_service import ConfigService
from ..services.deployment_service import DeploymentOrchestrator
from ..services.rollback_service import RollbackManager
from ..storage.base import DeploymentStore
from ..storage.factory import StoreFactory
from ..utils.async_utils import run_async
from .exceptions import PreconditionError

logger = logging.getLogger(__name__)


class Shipyard:
    """Entry point tying configuration, storage and the release engine together"""

    def __init__(self,
                 config: ShipyardConfig,
                 store: Optional[DeploymentStore] = None,
                 executor_factory=ExecutorFactory):
        """
        Initialize client

        Args:
            config: Loaded configuration
            store: Deployment store; defaults to the configured JSON state file
            executor_factory: Creates one executor per run
        """
        self.config = config
        self.store = store or StoreFactory.for_state_file(config.state_file)
        self.executor_factory = executor_factory
        self.release_manager = ReleaseManager()
        self.orchestrator = DeploymentOrchestrator(
            self.store, executor_factory, self.release_manager, self.release_manager.script_runner)
        self.rollback_manager = RollbackManager(self.store, executor_factory, self.release_manager)

    @classmethod
    def from_config_file(cls, config_path: Optional[Path] = None, **kwargs) -> 'Shipyard':
        return cls(ConfigService(config_path).load_config(), **kwargs)

    async def _application(self, name: str) -> Application:
        await self.store.initialize()
        application = self.config.get_application(name)
        application.status = await self.store.application_status(name)
        return application

    # Async API

    async def deploy_async(self,
                           app_name: str,
                           commit_hash: Optional[str] = None,
                           commit_message: Optional[str] = None,
                           listener: Optional[LogListener] = None,
                           cancel_event: Optional[asyncio.Event] = None) -> Deployment:
        """
        Deploy the configured branch of an application

        Args:
            app_name: Application name
            commit_hash: Source commit recorded on the deployment
            commit_message: Source commit message recorded on the deployment
            listener: Receives each log line as it is appended
            cancel_event: Set to cancel before activation

        Returns:
            Successful deployment

        Raises:
            ShipyardError: If the deployment failed
        """
        application = await self._application(app_name)
        deployment = Deployment(
            application=app_name,
            type=DeploymentType.DEPLOY,
            commit_hash=commit_hash,
            commit_message=commit_message,
        )
        await self.store.create(deployment)
        if listener:
            deployment.subscribe(listener)
        return await self.orchestrator.run(deployment, application, cancel_event)

    async def rollback_async(self,
                             app_name: str,
                             release_id: Optional[str] = None,
                             listener: Optional[LogListener] = None) -> Deployment:
        """
        Roll back to a release, or to the previous one when none is given

        Raises:
            PreconditionError: If no successful deployment recorded the release
            ShipyardError: If the rollback failed
        """
        application = await self._application(app_name)
        rollback = Deployment(application=app_name, type=DeploymentType.ROLLBACK)

        if release_id is None:
            await self.store.create(rollback)
            if listener:
                rollback.subscribe(listener)
            return await self.rollback_manager.rollback_to_previous(application, rollback)

        target = await self.find_release_deployment(app_name, release_id)
        await self.store.create(rollback)
        if listener:
            rollback.subscribe(listener)
        return await self.rollback_manager.rollback(application, target, rollback)

    async def find_release_deployment(self, app_name: str, release_id: str) -> Deployment:
        """Successful deployment that produced ``release_id``, preferring the original deploy"""
        matches = [
            d for d in await self.store.list_for_application(app_name)
            if d.status == DeploymentStatus.SUCCESS and d.release_id == release_id and d.release_path
        ]
        if not matches:
            raise PreconditionError(f"No successful deployment recorded for release {release_id}")
        matches.sort(key=lambda d: d.is_rollback)
        return matches[0]

    async def releases_async(self, app_name: str) -> List[ReleaseInfo]:
        application = await self._application(app_name)
        return await self.rollback_manager.get_available_releases(application)

    async def history_async(self, app_name: str, limit: Optional[int] = None) -> List[Deployment]:
        await self._application(app_name)
        return await self.store.list_for_application(app_name, limit)

    async def get_deployment_async(self, deployment_id: int) -> Optional[Deployment]:
        await self.store.initialize()
        return await self.store.get(deployment_id)

    async def status_async(self, app_name: str) -> Dict[str, Any]:
        """Live pointer and recorded state of an application"""
        application = await self._application(app_name)
        active = await self.store.active_deployment(app_name)

        current = None
        if application.uses_atomic_deployments:
            async with self.executor_factory.create(application.server) as executor:
                current = await self.release_manager.get_current_release_path(executor, application)

        return {
            "application": application,
            "status": application.status,
            "current_release_path": current,
            "active_deployment": active,
        }

    # Sync API

    def deploy(self, app_name: str, **kwargs) -> Deployment:
        return run_async(self.deploy_async(app_name, **kwargs))

    def rollback(self, app_name: str, release_id: Optional[str] = None, **kwargs) -> Deployment:
        return run_async(self.rollback_async(app_name, release_id, **kwargs))

    def releases(self, app_name: str) -> List[ReleaseInfo]:
        return run_async(self.releases_async(app_name))

    def history(self, app_name: str, limit: Optional[int] = None) -> List[Deployment]:
        return run_async(self.history_async(app_name, limit))

    def get_deployment(self, deployment_id: int) -> Optional[Deployment]:
        return run_async(self.get_deployment_async(deployment_id))

    def status(self, app_name: str) -> Dict[str, Any]:
        return run_async(self.status_async(app_name))
