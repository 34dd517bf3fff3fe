"""Core release engine components"""

from .release_manager import ReleaseManager
from .script_runner import ScriptRunner

__all__ = [
    'ReleaseManager',
    'ScriptRunner',
]
