from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Callable

from app.core.errors import EmptyExtractedText, ExtractionFailed, UnsupportedFormat

from .models import ExtractedText, SourceDocument

logger = logging.getLogger(__name__)


def _read_txt(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def _read_docx(content: bytes) -> str:
    from docx import Document

    document = Document(BytesIO(content))
    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                lines.extend(paragraph.text for paragraph in cell.paragraphs)
    return "\n".join(lines).strip()


def _read_pdf(content: bytes) -> str:
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(content))
    page_texts: list[str] = []
    for page in reader.pages:
        tokens = (page.extract_text() or "").split()
        page_texts.append(" ".join(tokens))
    text = "\n".join(page_texts).strip()
    if not text:
        raise EmptyExtractedText("PDF text is empty. It might be a scanned image.")
    return text


_READERS: dict[str, Callable[[bytes], str]] = {
    "txt": _read_txt,
    "docx": _read_docx,
    "pdf": _read_pdf,
}


def extract_document(document: SourceDocument) -> ExtractedText:
    extension = document.extension
    reader = _READERS.get(extension)
    if reader is None:
        raise UnsupportedFormat(extension)

    try:
        text = reader(document.content)
    except EmptyExtractedText:
        raise
    except Exception as exc:
        logger.warning("text_extraction_failed file=%s type=%s: %s", document.filename, extension, exc)
        raise ExtractionFailed(str(exc) or type(exc).__name__) from exc

    if not text.strip():
        raise EmptyExtractedText()

    logger.debug("text_extracted file=%s type=%s chars=%s", document.filename, extension, len(text))
    return ExtractedText(filename=document.filename, source_type=extension, text=text)


def extract_text(content: bytes, filename: str) -> ExtractedText:
    return extract_document(SourceDocument.from_bytes(content, filename))


async def extract_text_async(content: bytes, filename: str) -> ExtractedText:
    """Run extraction in a worker thread so PDF/DOCX decoding does not block the loop."""
    return await asyncio.to_thread(extract_text, content, filename)
