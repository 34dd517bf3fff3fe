# shipyard/storage/json_file.py
"""JSON file deployment store"""

import json
import logging
import os
from pathlib import Path

import aiofiles

from ..api.exceptions import StateError
from ..constants import ApplicationStatus
from ..models.deployment import Deployment
from .memory import MemoryDeploymentStore

logger = logging.getLogger(__name__)


class JsonDeploymentStore(MemoryDeploymentStore):
    """Memory store mirrored to a JSON state file after every change"""

    def __init__(self, config=None):
        super().__init__(config)
        path = self.config.get("path")
        if not path:
            raise ValueError("JSON store requires a 'path'")
        self.path = Path(path).expanduser()

    async def _do_initialize(self) -> None:
        if not self.path.exists():
            logger.debug(f"State file {self.path} does not exist yet")
            return

        async with aiofiles.open(self.path, 'r') as f:
            content = await f.read()

        try:
            data = json.loads(content) if content.strip() else {}
        except json.JSONDecodeError as e:
            raise StateError(f"Corrupt state file {self.path}: {e}")

        for item in data.get("deployments", []):
            deployment = Deployment.from_dict(item)
            self._deployments[deployment.id] = deployment

        for name, status in data.get("applications", {}).items():
            self._statuses[name] = ApplicationStatus(status)

        self._next_id = max(self._deployments, default=0) + 1
        logger.debug(f"Loaded {len(self._deployments)} deployments from {self.path}")

    async def _persist(self) -> None:
        data = {
            "applications": {name: status.value for name, status in self._statuses.items()},
            "deployments": [d.to_dict() for _, d in sorted(self._deployments.items())],
        }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        async with aiofiles.open(temp_path, 'w') as f:
            await f.write(json.dumps(data, indent=2))
        os.replace(temp_path, self.path)
