"""Deploy command implementation"""

import sys

import click
from rich.prompt import Confirm

from ..decorators import require_config
from ..utils.output import console, format_deployment_result, log_tail
from ...api.exceptions import ShipyardError
from ...constants import PROMPT_CONFIRM_DEPLOY


@click.command()
@click.argument('app_name')
@click.option('--commit', 'commit_hash', help='Source commit hash to record')
@click.option('--message', 'commit_message', help='Source commit message to record')
@click.option('--no-confirm', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
@require_config
def deploy(ctx, app_name, commit_hash, commit_message, no_confirm, client):
    """Deploy an application

    Clones the configured branch into a new release, runs the deploy
    script there and, only if everything succeeded, points `current` at
    it. Old releases beyond the retention count are removed.

    Examples:

        # Deploy with confirmation
        shipyard deploy shop

        # Record the triggering commit
        shipyard deploy shop --commit 3f2a9c1 --message "Fix checkout" --no-confirm
    """
    application = client.config.get_application(app_name)

    if not no_confirm:
        prompt = PROMPT_CONFIRM_DEPLOY.format(
            application=application.name,
            branch=application.branch,
            server=application.server.display_name,
        )
        if not Confirm.ask(f"[cyan]{prompt}[/cyan]"):
            console.print("[yellow]Deployment cancelled[/yellow]")
            return

    listener = None if ctx.obj.quiet else log_tail
    try:
        deployment = client.deploy(
            app_name,
            commit_hash=commit_hash,
            commit_message=commit_message,
            listener=listener,
        )
    except ShipyardError as e:
        latest = client.history(app_name, limit=1)
        if latest:
            format_deployment_result(latest[0], e)
        else:
            console.print(f"[red]Deployment failed:[/red] {e}")
        sys.exit(1)

    format_deployment_result(deployment)
