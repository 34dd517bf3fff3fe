# shipyard/storage/memory.py
"""In-memory deployment store"""

from typing import Dict, List, Optional

from ..constants import ApplicationStatus
from ..models.deployment import Deployment
from .base import DeploymentStore


class MemoryDeploymentStore(DeploymentStore):
    """Keeps records in process memory"""

    def __init__(self, config=None):
        super().__init__(config)
        self._deployments: Dict[int, Deployment] = {}
        self._statuses: Dict[str, ApplicationStatus] = {}
        self._next_id = 1

    async def _do_initialize(self) -> None:
        pass

    async def create(self, deployment: Deployment) -> Deployment:
        deployment.id = self._next_id
        self._next_id += 1
        self._deployments[deployment.id] = deployment
        await self._persist()
        return deployment

    async def save(self, deployment: Deployment) -> None:
        if deployment.id is None:
            await self.create(deployment)
            return
        self._deployments[deployment.id] = deployment
        await self._persist()

    async def get(self, deployment_id: int) -> Optional[Deployment]:
        return self._deployments.get(deployment_id)

    async def list_for_application(self, application: str,
                                   limit: Optional[int] = None) -> List[Deployment]:
        records = [d for d in self._deployments.values() if d.application == application]
        records.sort(key=lambda d: (d.created_at, d.id), reverse=True)
        if limit is not None:
            records = records[:limit]
        return records

    async def save_application_status(self, application: str, status: ApplicationStatus) -> None:
        self._statuses[application] = status
        await self._persist()

    async def application_status(self, application: str) -> ApplicationStatus:
        return self._statuses.get(application, ApplicationStatus.IDLE)

    async def _persist(self) -> None:
        """Hook for stores that write state out after each change"""
        pass
