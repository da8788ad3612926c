"""manindex find command - look up documented objects."""

import json

import click

from manindex.cli.utils import CLASS_CHOICE, get_config
from manindex.core.errors import IdentifierParseError
from manindex.index.identifiers import format_identifier, parse_identifier
from manindex.index.models import ANY, Callable, DcgCallable, DocClass, IndexRecord, Section
from manindex.index.store import ManualIndex


def lookup_pattern(token: str) -> object:
    """Query pattern for a command-line token.

    ``name/arity`` and the other anchor spellings match exactly; ``name/*``
    and ``name//*`` leave the arity open; a ``sec:`` token matches a section
    label; anything else matches callables of that name with any arity.
    """
    if token.startswith("sec:"):
        return Section(ANY, ANY, token, ANY)
    if token.endswith("//*"):
        return DcgCallable(token[:-3], ANY)
    if token.endswith("/*"):
        return Callable(token[:-2], ANY)
    try:
        return parse_identifier(token)
    except IdentifierParseError:
        return Callable(token, ANY)


def _as_dict(record: IndexRecord) -> dict[str, object]:
    return {
        "object": format_identifier(record.obj),
        "summary": record.summary,
        "file": record.file,
        "class": record.doc_class.value,
        "offset": record.offset,
    }


@click.command()
@click.argument("token")
@click.option("--class", "doc_class", type=CLASS_CHOICE, default=None, help="Restrict to one class")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def find_command(ctx: click.Context, token: str, doc_class: str | None, as_json: bool) -> None:
    """Print the index entries documenting TOKEN.

    TOKEN is an anchor spelling such as append/3, phrase//2, lists:append/3,
    f(max/2), c(PL_get_atom) or sec:builtin. name/* leaves the arity open.
    """
    index = ManualIndex(get_config(ctx))
    query = index.manual_object(
        obj=lookup_pattern(token),
        doc_class=DocClass(doc_class) if doc_class else ANY,
    )
    records = list(query)

    if as_json:
        click.echo(json.dumps([_as_dict(r) for r in records], indent=2))
        return

    if not records:
        raise click.ClickException(f"No documentation for {token}")
    for record in records:
        click.echo(f"{format_identifier(record.obj)}  ({record.file}:{record.offset})")
        if record.summary:
            click.echo(f"    {record.summary}")
