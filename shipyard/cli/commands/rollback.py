"""Rollback command implementation"""

import sys

import click
from rich.prompt import Confirm

from ..decorators import require_config
from ..utils.output import console, format_deployment_result, log_tail
from ...api.exceptions import ShipyardError
from ...constants import PROMPT_CONFIRM_ROLLBACK


@click.command()
@click.argument('app_name')
@click.option('--to', 'release_id', help='Release id to restore (default: previous release)')
@click.option('--no-confirm', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
@require_config
def rollback(ctx, app_name, release_id, no_confirm, client):
    """Roll back to an earlier release

    Re-points `current` at a release that is still on the server. Without
    --to, the most recent successful deployment before the active one is
    used. Only available for the atomic strategy.

    Examples:

        shipyard rollback shop
        shipyard rollback shop --to 20250114093011482113
    """
    if not no_confirm:
        prompt = PROMPT_CONFIRM_ROLLBACK.format(
            application=app_name,
            target=release_id or "the previous release",
        )
        if not Confirm.ask(f"[cyan]{prompt}[/cyan]"):
            console.print("[yellow]Rollback cancelled[/yellow]")
            return

    listener = None if ctx.obj.quiet else log_tail
    try:
        deployment = client.rollback(app_name, release_id, listener=listener)
    except ShipyardError as e:
        latest = client.history(app_name, limit=1)
        if latest and latest[0].is_rollback:
            format_deployment_result(latest[0], e)
        else:
            console.print(f"[red]Rollback failed:[/red] {e}")
        sys.exit(1)

    format_deployment_result(deployment)
