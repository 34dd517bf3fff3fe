"""CLI utilities"""

from .output import (
    console,
    format_deployment_result,
    format_history_table,
    format_releases_table,
    format_status,
    log_tail,
)

__all__ = [
    'console',
    'format_deployment_result',
    'format_history_table',
    'format_releases_table',
    'format_status',
    'log_tail',
]
