"""Best-effort text excerpts for tagging.

extract_file_content() never raises: unsupported formats, missing optional
libraries and unreadable files all yield None, and the tagger falls back to
filename-only tags.

PDF, Word and Excel support needs the `documents` extra
(pypdf, python-docx, openpyxl).
"""

import asyncio
import csv
import io
from pathlib import Path
from typing import Optional

from artaka.core.text import extension
from artaka.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EXCERPT_CHARS = 2000

PLAIN_TEXT_EXTENSIONS = {"txt", "md", "markdown", "csv"}


def _read_plain(path: Path, limit: int) -> str:
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read(limit)


def _read_pdf(path: Path, limit: int) -> str:
    from pypdf import PdfReader

    reader = PdfReader(path)
    parts = []
    total = 0
    for page in reader.pages:
        text = page.extract_text() or ""
        parts.append(text)
        total += len(text)
        if total >= limit:
            break
    return "\n".join(parts)[:limit]


def _read_docx(path: Path, limit: int) -> str:
    from docx import Document as DocxDocument

    doc = DocxDocument(path)
    text = "\n".join(p.text for p in doc.paragraphs)
    return text[:limit]


def _read_xlsx(path: Path, limit: int) -> str:
    from openpyxl import load_workbook

    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        for row in sheet.iter_rows(values_only=True):
            writer.writerow(["" if cell is None else cell for cell in row])
            if buffer.tell() >= limit:
                break
        return buffer.getvalue()[:limit]
    finally:
        workbook.close()


_READERS = {
    "pdf": _read_pdf,
    "docx": _read_docx,
    "xlsx": _read_xlsx,
}


def _extract(path: Path, limit: int) -> Optional[str]:
    ext = extension(str(path))
    if ext in PLAIN_TEXT_EXTENSIONS:
        return _read_plain(path, limit)
    reader = _READERS.get(ext)
    if reader is None:
        return None
    return reader(path, limit)


async def extract_file_content(
    file_path: str, max_chars: int = DEFAULT_EXCERPT_CHARS
) -> Optional[str]:
    """Return up to max_chars of text from a file, or None.

    Args:
        file_path: File to read
        max_chars: Excerpt cap

    Returns:
        Text excerpt, or None if the format is unsupported or reading failed
    """
    path = Path(file_path)
    try:
        content = await asyncio.to_thread(_extract, path, max_chars)
    except ImportError as e:
        logger.warning("extraction_library_missing", path=file_path, error=str(e),
                       suggestion="Install with: pip install 'artaka[documents]'")
        return None
    except Exception as e:
        logger.error("extraction_failed", path=file_path, error=str(e))
        return None

    if content is not None and not content.strip():
        return None
    return content
