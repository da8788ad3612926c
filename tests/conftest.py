"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from pathlib import Path

# Insert local src directory at the beginning of sys.path
# This ensures that the local manindex package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of manindex modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("manindex"):
        del sys.modules[module_name]

import pytest  # noqa: E402

from manindex.config.models import ManIndexConfig, ManualConfig  # noqa: E402

LISTS_PAGE = """<html><head><title>Lists</title></head>
<body>
<div class="title">Library lists</div>
<h2 id="sec:lists"><span class="sec-nr">A.1</span> <span class="sec-title">library(lists): List Manipulation</span></h2>
<dl>
<dt class="pubdef"><a id="append/3">append(?List1, ?List2, ?List1AndList2)</a></dt>
<dd>List1AndList2 is the concatenation of List1 and List2. It can also split.</dd>
<dt class="pubdef"><a id="member/2">member(?Elem, ?List)</a></dt>
<dt class="pubdef"><a id="memberchk/2">memberchk(?Elem, +List)</a></dt>
<dd>True if Elem is a member of List. Deterministic for memberchk.</dd>
</dl>
</body></html>
"""

IO_PAGE = """<html><body>
<h2 id="sec:IO"><span class="sec-nr">4.17</span> <span class="sec-title">Input and output</span></h2>
<dl>
<dt class="pubdef"><a name="open/4" id="open/4">open(+SrcDest, +Mode, --Stream, +Options)</a></dt>
<dd>Open SrcDest in the given Mode.</dd>
</dl>
<h3 id="sec:lists">4.17.1 Duplicate label</h3>
</body></html>
"""

PCRE_PAGE = """<html><body>
<div class="title">Perl regular expressions</div>
<dl>
<dt class="pubdef"><a data-obj="pcre:re_match/2" id="re_match/2">re_match(+Regex, +String)</a></dt>
<dd>Succeeds if String matches Regex.</dd>
</dl>
</body></html>
"""


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """A small documentation tree: two manual pages and one package page."""
    root = tmp_path / "doc"
    (root / "Manual").mkdir(parents=True)
    (root / "packages").mkdir()
    (root / "Manual" / "lists.html").write_text(LISTS_PAGE, encoding="utf-8")
    (root / "Manual" / "IO.html").write_text(IO_PAGE, encoding="utf-8")
    (root / "packages" / "pcre.html").write_text(PCRE_PAGE, encoding="utf-8")
    return root


@pytest.fixture
def config(doc_root: Path) -> ManIndexConfig:
    """Configuration pointing at the sample documentation tree."""
    return ManIndexConfig(manual=ManualConfig(doc_root=str(doc_root)))
