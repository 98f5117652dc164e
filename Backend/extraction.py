"""
Best-effort PDF text extraction.

Works for digital PDFs only; scanned pages yield no text. Any failure is
absorbed and reported as an empty string so an unreadable file never blocks
an upload.
"""
import logging

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


def extract_text(data: bytes) -> str:
    """Return the text of every page joined by newlines, trimmed, or "" on failure."""
    if not data:
        return ""
    try:
        with fitz.open(stream=data, filetype="pdf") as pdf:
            pages = [page.get_text() for page in pdf]
    except Exception as e:
        logger.warning(f"PDF text extraction failed: {e}")
        return ""

    text = "\n".join(pages).strip()
    logger.info(f"Extracted {len(text)} characters from {len(pages)} pages")
    return text
