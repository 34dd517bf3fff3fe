"""Configuration context decorator for CLI commands"""

from functools import wraps
from typing import Callable

import click

from ..utils.output import console
from ...api.exceptions import ConfigError
from ...constants import EMOJI_ERROR


def require_config(func: Callable) -> Callable:
    """Decorator that loads the configuration before the command runs

    The command receives the API client as ``client``; a missing or invalid
    configuration file, or an unknown application name, exits with status 1.

    Args:
        func: Command function to decorate

    Returns:
        Decorated function
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()

        try:
            client = ctx.obj.client
            app_name = kwargs.get("app_name")
            if app_name is not None:
                client.config.get_application(app_name)
        except ConfigError as e:
            console.print(f"{EMOJI_ERROR} {e}")
            ctx.exit(1)

        return func(*args, client=client, **kwargs)

    return wrapper
