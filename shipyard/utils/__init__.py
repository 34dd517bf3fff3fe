"""Utility functions for shipyard"""

from .async_utils import run_async
from .formatting import format_duration, format_timestamp, pluralize, slugify, truncate
from .template_utils import render_env_file, substitute_variables

__all__ = [
    'run_async',
    'format_duration',
    'format_timestamp',
    'pluralize',
    'slugify',
    'truncate',
    'render_env_file',
    'substitute_variables',
]
