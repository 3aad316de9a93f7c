from __future__ import annotations

import logging
from pathlib import Path

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import MalformedPDFException, PdfminerException

from result_parser.parse_results import DocumentText

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".text"}

# Everything load_document raises for a file that exists but cannot be read
READ_ERRORS = (
    OSError,
    UnicodeDecodeError,
    PdfminerException,
    MalformedPDFException,
    PSException,
)


def extract_pages(path: Path) -> list[str]:
    """Plain text of every page, in page order. Image-only pages come back empty."""
    pages: list[str] = []
    with pdfplumber.open(path) as pdf:
        for pidx, page in enumerate(pdf.pages, start=1):
            text = page.extract_text() or ""
            if not text:
                logger.debug("%s: page %d has no extractable text", path.name, pidx)
            pages.append(text)
    return pages


def load_document(path: Path) -> DocumentText:
    if path.suffix.lower() in TEXT_SUFFIXES:
        return DocumentText.from_raw(path.read_text(encoding="utf-8"))
    pages = extract_pages(path)
    logger.debug("%s: extracted %d page(s)", path.name, len(pages))
    return DocumentText.from_pages(pages)
