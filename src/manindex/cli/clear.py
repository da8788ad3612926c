"""manindex clear command - remove the index snapshot."""

from pathlib import Path

import click
import questionary

from manindex.cli.utils import get_config
from manindex.core.progress import get_console


def clear_snapshot(snapshot: Path, *, yes: bool = False) -> bool:
    """Delete the snapshot file.

    Returns True if it was removed, False if cancelled or nothing to clear.

    Raises:
        click.ClickException: The file exists but cannot be removed.
    """
    console = get_console()

    if not snapshot.exists():
        console.print("[yellow]Nothing to clear[/yellow] - no snapshot found")
        return False

    console.print("\n[bold]The following will be deleted:[/bold]\n")
    console.print(f"  [cyan]•[/cyan] {snapshot}\n")

    if not yes:
        answer = questionary.confirm(
            "The next lookup will rescan the manuals. Continue?", default=False
        ).ask()
        if not answer:
            console.print("[dim]Cancelled[/dim]")
            return False

    try:
        snapshot.unlink()
    except OSError as e:
        console.print(f"  [red]✗[/red] Failed to remove {snapshot}: {e}")
        raise click.ClickException(f"Failed to remove {snapshot}: {e}") from e

    console.print(f"  [green]✓[/green] Removed {snapshot}")
    return True


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def clear_command(ctx: click.Context, yes: bool) -> None:
    """Remove the index snapshot so the next build rescans the manuals."""
    config = get_config(ctx)
    clear_snapshot(config.manual.snapshot_path(), yes=yes)
