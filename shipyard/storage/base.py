# shipyard/storage/base.py
"""Deployment store abstract base class"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..constants import ApplicationStatus
from ..models.deployment import Deployment


class DeploymentStore(ABC):
    """Persistence for deployment records and application status.

    Records are never deleted. At most one deployment per application is
    active; :meth:`mark_active` enforces it.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize store

        Args:
            config: Store-specific configuration
        """
        self.config = config or {}
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize store (e.g., load persisted state)"""
        if not self._initialized:
            await self._do_initialize()
            self._initialized = True

    @abstractmethod
    async def _do_initialize(self) -> None:
        """Actual initialization logic to be implemented by subclasses"""
        pass

    @abstractmethod
    async def create(self, deployment: Deployment) -> Deployment:
        """
        Persist a new record, assigning its id

        Args:
            deployment: Record without an id

        Returns:
            The same record with ``id`` set
        """
        pass

    @abstractmethod
    async def save(self, deployment: Deployment) -> None:
        """Persist the current state of a record"""
        pass

    @abstractmethod
    async def get(self, deployment_id: int) -> Optional[Deployment]:
        pass

    @abstractmethod
    async def list_for_application(self, application: str,
                                   limit: Optional[int] = None) -> List[Deployment]:
        """
        Records of an application, newest first

        Args:
            application: Application name
            limit: Maximum number of records

        Returns:
            Records ordered by creation time descending (id breaks ties)
        """
        pass

    @abstractmethod
    async def save_application_status(self, application: str, status: ApplicationStatus) -> None:
        pass

    @abstractmethod
    async def application_status(self, application: str) -> ApplicationStatus:
        pass

    async def active_deployment(self, application: str) -> Optional[Deployment]:
        """The record whose release ``current`` points to, if any"""
        for deployment in await self.list_for_application(application):
            if deployment.is_active:
                return deployment
        return None

    async def mark_active(self, deployment: Deployment) -> None:
        """Flag ``deployment`` active and clear the flag on every other record of its application"""
        for other in await self.list_for_application(deployment.application):
            if other.id != deployment.id and other.is_active:
                other.is_active = False
                await self.save(other)
        deployment.is_active = True
        await self.save(deployment)

    async def close(self) -> None:
        """Release resources"""
        pass

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
