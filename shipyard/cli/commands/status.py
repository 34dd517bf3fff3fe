"""Status command implementation"""

import click

from ..decorators import require_config
from ..utils.output import format_status


@click.command()
@click.argument('app_name')
@click.pass_context
@require_config
def status(ctx, app_name, client):
    """Show where `current` points and the active deployment"""
    format_status(client.status(app_name))
