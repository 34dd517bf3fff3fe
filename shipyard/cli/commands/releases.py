"""Releases command implementation"""

import click

from ..decorators import require_config
from ..utils.output import format_releases_table


@click.command()
@click.argument('app_name')
@click.pass_context
@require_config
def releases(ctx, app_name, client):
    """List releases still present on the server

    The active release is marked; any listed release can be restored with
    `shipyard rollback APP --to RELEASE`.
    """
    format_releases_table(app_name, client.releases(app_name))
