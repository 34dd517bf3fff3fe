"""Deployment store factory"""

from typing import Any, Dict, Type

from .base import DeploymentStore
from .json_file import JsonDeploymentStore
from .memory import MemoryDeploymentStore


class StoreFactory:
    """Factory for creating deployment store instances"""

    # Registry of stores
    _stores: Dict[str, Type[DeploymentStore]] = {
        "memory": MemoryDeploymentStore,
        "json": JsonDeploymentStore,
    }

    @classmethod
    def create(cls, store_type: str, config: Dict[str, Any] = None) -> DeploymentStore:
        """Create a store by type

        Raises:
            ValueError: If the store type is not supported
        """
        if store_type not in cls._stores:
            raise ValueError(f"Unsupported store type: {store_type}")
        return cls._stores[store_type](config or {})

    @classmethod
    def for_state_file(cls, path: str) -> DeploymentStore:
        return cls.create("json", {"path": path})

    @classmethod
    def register(cls, store_type: str, store_class: Type[DeploymentStore]) -> None:
        """Register a custom store"""
        if not issubclass(store_class, DeploymentStore):
            raise ValueError(f"{store_class} must inherit from DeploymentStore")
        cls._stores[store_type] = store_class
