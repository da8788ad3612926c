"""manindex check-ids command - report section labels used more than once."""

import click

from manindex.cli.utils import get_config
from manindex.core.progress import pluralize, status
from manindex.index.store import ManualIndex


@click.command()
@click.pass_context
def check_ids_command(ctx: click.Context) -> None:
    """Check that every section label of the manual is unique.

    Exits with status 1 when duplicates are found.
    """
    index = ManualIndex(get_config(ctx))
    index.load_or_build()

    duplicates = index.check_duplicate_section_ids()
    if not duplicates:
        status("No duplicate section ids", style="success")
        return

    status(f"{pluralize(len(duplicates), 'duplicate section id')}:", style="error")
    for label in duplicates:
        click.echo(label)
    ctx.exit(1)
