"""PDF document extraction using PyMuPDF."""

from __future__ import annotations

from docingest.errors import ExtractionError

from .base import ExtractedDocument

FORMAT = "pdf"


def extract_pdf(data: bytes) -> ExtractedDocument:
    """
    Extract text from PDF bytes.

    Pages are read in order and their text joined with newlines.
    Embedded images are not extracted for PDFs.

    Args:
        data: Raw PDF file bytes

    Returns:
        ExtractedDocument with text content and no images

    Raises:
        ExtractionError: If the PDF is unreadable or encrypted
    """
    import fitz  # pymupdf

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        # FileDataError / EmptyFileError derive from RuntimeError
        raise ExtractionError(FORMAT, ExtractionError.MALFORMED, f"Cannot open PDF: {e}") from e

    try:
        if doc.needs_pass:
            raise ExtractionError(FORMAT, ExtractionError.MALFORMED, "PDF is encrypted")

        text_parts: list[str] = []
        for page in doc:
            text_parts.append(page.get_text())
    except (RuntimeError, ValueError) as e:
        raise ExtractionError(FORMAT, ExtractionError.MALFORMED, f"Cannot read PDF text: {e}") from e
    finally:
        doc.close()

    return ExtractedDocument(text="\n".join(text_parts))
