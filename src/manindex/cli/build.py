"""manindex build, save and index commands."""

from pathlib import Path

import click

from manindex.cli.utils import CLASS_CHOICE, get_config
from manindex.core.errors import MarkupError
from manindex.core.progress import count_table, get_console, pluralize, status, task
from manindex.index.identifiers import format_identifier
from manindex.index.models import DocClass, IndexRecord
from manindex.index.store import ManualIndex


def _class_counts(records: list[IndexRecord]) -> dict[str, int]:
    counts = {doc_class.value: 0 for doc_class in DocClass}
    for record in records:
        counts[record.doc_class.value] += 1
    return {name: count for name, count in counts.items() if count}


@click.command()
@click.option("--force", "-f", is_flag=True, help="Ignore the existing snapshot and rescan")
@click.pass_context
def build_command(ctx: click.Context, force: bool) -> None:
    """Build the manual index, or load it from the snapshot.

    With --force the snapshot is discarded first, so the manuals are
    scanned again and a fresh snapshot is written.
    """
    config = get_config(ctx)
    snapshot = config.manual.snapshot_path()

    if force and snapshot.exists():
        try:
            snapshot.unlink()
        except OSError as e:
            raise click.ClickException(f"Cannot remove {snapshot}: {e}") from e

    index = ManualIndex(config)
    label = "Building manual index" if force or not snapshot.exists() else "Loading manual index"
    with task(label) as outcome:
        index.load_or_build()
        outcome.detail = pluralize(len(index), "record")

    records = index.records()
    status(f"Snapshot: {snapshot}", style="info")
    if records:
        get_console().print(count_table(_class_counts(records)))


@click.command()
@click.pass_context
def save_command(ctx: click.Context) -> None:
    """Write the snapshot, building the index first when needed."""
    config = get_config(ctx)
    index = ManualIndex(config)
    index.load_or_build()
    snapshot = config.manual.snapshot_path()
    if not index.save_snapshot():
        raise click.ClickException(f"Failed to write {snapshot}")
    status(f"Saved {pluralize(len(index), 'record')} to {snapshot}", style="success")


@click.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--class",
    "doc_class",
    type=CLASS_CHOICE,
    default=DocClass.MISC.value,
    show_default=True,
    help="Documentation class of the indexed pages",
)
@click.pass_context
def index_command(ctx: click.Context, path: Path, doc_class: str) -> None:
    """Index PATH (a page or a directory of pages) and print its entries.

    The snapshot is not touched.
    """
    config = get_config(ctx)
    index = ManualIndex(config)
    try:
        if path.is_dir():
            count = index.index_directory(path, DocClass(doc_class))
        else:
            count = index.index_file(path, DocClass(doc_class))
    except MarkupError as e:
        raise click.ClickException(e.message) from e

    for record in index.records():
        location = f"{record.file}:{record.offset}"
        click.echo(f"{format_identifier(record.obj)}\t{location}\t{record.summary}")
    status(f"Indexed {pluralize(count, 'entry', 'entries')} from {path}", style="success")
