"""Text extraction for uploaded PDF files."""

import io
import logging

from pypdf import PdfReader

logger = logging.getLogger(__name__)


def extract_text(file_bytes: bytes) -> str:
    """Extract the text of every page of a PDF, pages joined by newlines.

    Pages without a text layer contribute an empty string.
    """
    reader = PdfReader(io.BytesIO(file_bytes))
    pages = [page.extract_text() or "" for page in reader.pages]
    logger.debug("Extracted %d pages (%d chars)", len(pages), sum(len(p) for p in pages))
    return "\n".join(pages)
