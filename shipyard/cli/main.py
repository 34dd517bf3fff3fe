# shipyard/cli/main.py
"""Main CLI entry point for shipyard"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from ..__version__ import get_version
from ..api.client import Shipyard
from ..constants import APP_NAME, LOG_FORMAT
from .commands import deploy, history, log, releases, rollback, status

console = Console()


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )

    # Adjust third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiofiles").setLevel(logging.WARNING)
    logging.getLogger("paramiko").setLevel(logging.WARNING)


class Context:
    """CLI context object with lazy client initialization

    The configuration file is only read when a command first asks for
    the client.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False
        self._client: Optional[Shipyard] = None

    @property
    def client(self) -> Shipyard:
        """Get the API client (lazy loading)

        Raises:
            ConfigError: If the configuration cannot be loaded
        """
        if self._client is None:
            self._client = Shipyard.from_config_file(self.config_path)
        return self._client


@click.group(name=APP_NAME)
@click.version_option(version=get_version(), prog_name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.option('-c', '--config', 'config_path', type=click.Path(path_type=Path),
              help='Configuration file (default: $SHIPYARD_CONFIG or ./.shipyard.yaml)')
@click.pass_context
def cli(ctx, verbose, debug, quiet, config_path):
    """Shipyard - zero-downtime deployments for Git-sourced applications

    Each deployment is cloned into its own timestamped release directory
    and activated by atomically swapping the `current` symlink, so a
    failed build never takes the live site down and any release still on
    the server can be restored instantly.
    """
    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=verbose, debug=debug)

    ctx.obj = Context(config_path)
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug
    ctx.obj.quiet = quiet


# Register commands
cli.add_command(deploy.deploy)
cli.add_command(rollback.rollback)
cli.add_command(releases.releases)
cli.add_command(history.history)
cli.add_command(status.status)
cli.add_command(log.log)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
