"""Log command implementation"""

import click

from ..decorators import require_config
from ..utils.output import console


@click.command()
@click.argument('deployment_id', type=int)
@click.pass_context
@require_config
def log(ctx, deployment_id, client):
    """Print the stored log of a deployment"""
    deployment = client.get_deployment(deployment_id)
    if deployment is None:
        console.print(f"[red]Deployment #{deployment_id} not found[/red]")
        ctx.exit(1)

    console.out(deployment.log, end="", highlight=False)
