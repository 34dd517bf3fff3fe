"""Data models for shipyard"""

from .application import Application, ApplicationKind, KindProfile
from .config import ShipyardConfig
from .deployment import Deployment, LogEvent
from .git_provider import GitProvider
from .release import ReleaseId, ReleaseIdGenerator, ReleaseInfo
from .result import CommandResult, StepResult, step
from .server import Server

__all__ = [
    'Application',
    'ApplicationKind',
    'KindProfile',
    'ShipyardConfig',
    'Deployment',
    'LogEvent',
    'GitProvider',
    'ReleaseId',
    'ReleaseIdGenerator',
    'ReleaseInfo',
    'CommandResult',
    'StepResult',
    'step',
    'Server',
]
