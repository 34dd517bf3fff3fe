# shipyard/cli/utils/output.py
"""Output formatting utilities"""

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ...constants import DeploymentStatus, EMOJI_ERROR, EMOJI_SUCCESS, EMOJI_WARNING
from ...models import Deployment, LogEvent, ReleaseInfo
from ...utils.formatting import format_duration, format_timestamp, truncate

console = Console()

_STATUS_STYLES = {
    "pending": "dim",
    "running": "cyan",
    "deploying": "cyan",
    "success": "green",
    "active": "green",
    "failed": "red",
    "idle": "dim",
}


def status_text(value: str) -> Text:
    return Text(value, style=_STATUS_STYLES.get(value, ""))


def log_tail(event: LogEvent) -> None:
    """Log listener printing each line as it is appended"""
    if event.line:
        console.out(event.line, end="", highlight=False)


def format_deployment_result(deployment: Deployment, error: Optional[Exception] = None) -> None:
    """Format and display a finished deployment or rollback"""
    kind = "Rollback" if deployment.is_rollback else "Deploy"

    if deployment.status == DeploymentStatus.SUCCESS:
        lines = [
            f"[green]{EMOJI_SUCCESS}[/green] {kind} completed successfully!",
            "",
            f"[bold]Application:[/bold] {deployment.application}",
            f"[bold]Deployment:[/bold] #{deployment.id}",
            f"[bold]Release:[/bold] {deployment.release_id}",
            f"[bold]Path:[/bold] {deployment.release_path}",
            f"[bold]Duration:[/bold] {format_duration(deployment.duration)}",
        ]
        if deployment.commit_hash:
            lines.append(f"[bold]Commit:[/bold] {deployment.commit_hash[:12]}"
                         f" {truncate(deployment.commit_message, 60)}")

        console.print(Panel("\n".join(lines), title=f"{kind} Result", border_style="green"))
        return

    lines = [f"[red]{EMOJI_ERROR} {kind} failed:[/red] {error or 'see log'}"]
    lines.append("")
    lines.append(f"[bold]Deployment:[/bold] #{deployment.id}")
    if deployment.release_id:
        lines.append(f"[bold]Release:[/bold] {deployment.release_id} (not activated)")
    if deployment.working_tree_dirty:
        lines.append(f"[yellow]{EMOJI_WARNING} Working tree may be partially updated[/yellow]")
    lines.append(f"[dim]shipyard log {deployment.id}[/dim] shows the full log")

    console.print(Panel("\n".join(lines), title=f"{kind} Error", border_style="red"))


def format_releases_table(app_name: str, releases: List[ReleaseInfo]) -> None:
    """Display releases present on the host"""
    if not releases:
        console.print(f"[yellow]No releases found for {app_name}[/yellow]")
        return

    table = Table(title=f"Releases: {app_name}", box=box.ROUNDED)
    table.add_column("Release", style="cyan")
    table.add_column("Active", justify="center")
    table.add_column("Deployment", justify="right")
    table.add_column("Commit")
    table.add_column("Created")

    for release in releases:
        commit = ""
        if release.commit_hash:
            commit = f"{release.commit_hash[:8]} {truncate(release.commit_message, 40)}"
        table.add_row(
            release.release_id,
            "[green]●[/green]" if release.is_active else "",
            f"#{release.deployment_id}" if release.deployment_id else "-",
            commit,
            format_timestamp(release.created_at),
        )

    console.print(table)


def format_history_table(app_name: str, deployments: List[Deployment]) -> None:
    """Display deployment records"""
    if not deployments:
        console.print(f"[yellow]No deployments recorded for {app_name}[/yellow]")
        return

    table = Table(title=f"Deployments: {app_name}", box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Release", style="cyan")
    table.add_column("Active", justify="center")
    table.add_column("Created")
    table.add_column("Duration", justify="right")

    for deployment in deployments:
        table.add_row(
            f"#{deployment.id}",
            deployment.type.value,
            status_text(deployment.status.value),
            deployment.release_id or "-",
            "[green]●[/green]" if deployment.is_active else "",
            format_timestamp(deployment.created_at),
            format_duration(deployment.duration),
        )

    console.print(table)


def format_status(status: Dict[str, Any]) -> None:
    """Display the live state of an application"""
    application = status["application"]
    active = status["active_deployment"]
    current = status["current_release_path"]

    lines = [
        f"[bold]Server:[/bold] {application.server.display_name}",
        f"[bold]Strategy:[/bold] {application.strategy.value}",
        f"[bold]Path:[/bold] {application.deploy_path}",
    ]
    status_value = status["status"].value
    style = _STATUS_STYLES.get(status_value, "")
    lines.append(f"[bold]Status:[/bold] [{style}]{status_value}[/{style}]" if style
                 else f"[bold]Status:[/bold] {status_value}")

    if application.uses_atomic_deployments:
        lines.append(f"[bold]Current:[/bold] {current or '[yellow]not linked[/yellow]'}")
    if active:
        lines.append(f"[bold]Active deployment:[/bold] #{active.id} ({active.type.value}, "
                     f"release {active.release_id})")

    console.print(Panel("\n".join(lines), title=application.name, border_style="cyan"))
