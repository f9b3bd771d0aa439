"""Plain text extraction."""

from __future__ import annotations

from .base import ExtractedDocument


def extract_text(data: bytes) -> ExtractedDocument:
    """
    Decode plain text bytes as UTF-8.

    Invalid byte sequences become U+FFFD instead of failing.
    """
    return ExtractedDocument(text=data.decode("utf-8", errors="replace"))
