"""manindex CLI - manindex command."""

from pathlib import Path

import click

from manindex.cli.build import build_command, index_command, save_command
from manindex.cli.check import check_ids_command
from manindex.cli.clear import clear_command
from manindex.cli.find import find_command
from manindex.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="manindex")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: ./manindex.yaml)",
)
@click.option(
    "--doc-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Documentation root holding Manual/ and packages/",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None, doc_root: Path | None) -> None:
    """manindex - index HTML reference manuals for help lookups."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path
    ctx.obj["doc_root"] = doc_root
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(build_command, name="build")
cli.add_command(save_command, name="save")
cli.add_command(index_command, name="index")
cli.add_command(find_command, name="find")
cli.add_command(check_ids_command, name="check-ids")
cli.add_command(clear_command, name="clear")


if __name__ == "__main__":
    cli()
