"""History command implementation"""

import click

from ..decorators import require_config
from ..utils.output import format_history_table


@click.command()
@click.argument('app_name')
@click.option('-n', '--limit', type=int, default=20, show_default=True,
              help='Maximum number of deployments to show')
@click.pass_context
@require_config
def history(ctx, app_name, limit, client):
    """Show recorded deployments and rollbacks, newest first"""
    format_history_table(app_name, client.history(app_name, limit))
