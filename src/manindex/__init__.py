"""manindex - index the HTML reference manuals for help and IDE lookups."""

from manindex.index import (
    ANY,
    Callable,
    CReference,
    DcgCallable,
    DocClass,
    FunctionLike,
    IndexRecord,
    ManualIndex,
    QualifiedCallable,
    Section,
    get_manual_index,
    parse_identifier,
)

__version__ = "0.1.0"

__all__ = [
    "ANY",
    "Callable",
    "CReference",
    "DcgCallable",
    "DocClass",
    "FunctionLike",
    "IndexRecord",
    "ManualIndex",
    "QualifiedCallable",
    "Section",
    "get_manual_index",
    "parse_identifier",
    "__version__",
]
