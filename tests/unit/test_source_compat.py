"""Source files must stay valid on the oldest supported interpreter (3.11)."""

import io
import sys
import tokenize
from pathlib import Path

import pytest

SOURCE_ROOT = Path(__file__).resolve().parents[2] / "src" / "artaka"
SOURCE_FILES = sorted(SOURCE_ROOT.rglob("*.py"))


def _reused_fstring_quotes(source: str) -> list[int]:
    """Line numbers where a string nested in an f-string reuses its quote."""
    lines = []
    quotes: list[str] = []
    for token in tokenize.generate_tokens(io.StringIO(source).readline):
        if quotes and token.type in (tokenize.STRING, tokenize.FSTRING_START):
            if token.string.lstrip("rRfFbBuU").startswith(quotes[-1]):
                lines.append(token.start[0])
        if token.type == tokenize.FSTRING_START:
            quotes.append(token.string.lstrip("rRfFbB"))
        elif token.type == tokenize.FSTRING_END:
            quotes.pop()
    return lines


def test_sources_found():
    assert SOURCE_FILES


@pytest.mark.parametrize("path", SOURCE_FILES, ids=lambda p: str(p.relative_to(SOURCE_ROOT)))
def test_compiles(path):
    compile(path.read_text(), str(path), "exec")


@pytest.mark.skipif(sys.version_info < (3, 12), reason="compile() already rejects this before 3.12")
@pytest.mark.parametrize("path", SOURCE_FILES, ids=lambda p: str(p.relative_to(SOURCE_ROOT)))
def test_fstrings_do_not_reuse_quotes(path):
    assert _reused_fstring_quotes(path.read_text()) == []
