"""Document extraction for PDF, Word, Excel, and plain text uploads."""

from __future__ import annotations

from docingest.classify import DocumentFormat, require_supported
from docingest.errors import ExtractionError, IngestError
from docingest.runtime import RuntimeConfig

from .base import (
    IMAGE_EXTENSIONS,
    EmbeddedImage,
    ExtractedDocument,
    MediaBlob,
    extension_for,
)


def extract_document(blob: MediaBlob, config: RuntimeConfig | None = None) -> ExtractedDocument:
    """
    Extract text and images from an uploaded document.

    The extractor is chosen from the declared media type alone; the
    bytes are not inspected until an extractor has been selected.

    Args:
        blob: Uploaded bytes with declared media type
        config: Runtime configuration (used by the Word extractor)

    Returns:
        ExtractedDocument with text content and embedded images

    Raises:
        UnsupportedFormat: If the media type is not a supported document type
        ExtractionError: If the selected extractor cannot parse the bytes
        StagingFailure: If on-disk staging fails
    """
    fmt = require_supported(blob.media_type)

    try:
        return _dispatch(fmt, blob.data, config)
    except IngestError:
        raise
    except Exception as e:
        raise ExtractionError(
            fmt.value, ExtractionError.INTERNAL, f"Unexpected {type(e).__name__}: {e}"
        ) from e


def _dispatch(fmt: DocumentFormat, data: bytes, config: RuntimeConfig | None) -> ExtractedDocument:
    if fmt is DocumentFormat.PDF:
        from .pdf import extract_pdf

        return extract_pdf(data)
    elif fmt is DocumentFormat.DOCX:
        from .word import extract_word

        return extract_word(data, config=config)
    elif fmt is DocumentFormat.DOC:
        from .word import extract_word

        return extract_word(data, legacy=True, config=config)
    elif fmt is DocumentFormat.XLSX:
        from .excel import extract_xlsx

        return extract_xlsx(data)
    elif fmt is DocumentFormat.XLS:
        from .excel import extract_xls

        return extract_xls(data)
    elif fmt is DocumentFormat.TEXT:
        from .text import extract_text

        return extract_text(data)
    else:
        raise AssertionError(f"No extractor registered for {fmt!r}")


__all__ = [
    "MediaBlob",
    "ExtractedDocument",
    "EmbeddedImage",
    "IMAGE_EXTENSIONS",
    "extension_for",
    "extract_document",
]
