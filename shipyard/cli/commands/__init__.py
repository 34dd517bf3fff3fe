"""CLI commands"""

from . import deploy
from . import rollback
from . import releases
from . import history
from . import status
from . import log

__all__ = [
    "deploy",
    "rollback",
    "releases",
    "history",
    "status",
    "log",
]
