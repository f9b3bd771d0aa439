"""
Upload boundary checks.

These run before the core sees an upload: size ceilings, the document
extension allow-list, and a magic-byte check that the bytes look like
the declared container. The core itself trusts the declared media type.
"""

from __future__ import annotations

import mimetypes
from pathlib import PurePath
from typing import Sequence

from docingest.classify import (
    DOCUMENT_MEDIA_TYPES,
    IMAGE_MEDIA_TYPES,
    DocumentFormat,
    ImageFormat,
    classify,
    classify_image,
    media_type_essence,
)
from docingest.errors import UploadRejected
from docingest.extract.base import MediaBlob
from docingest.runtime import RuntimeConfig, get_global_config

DOCUMENT_EXTENSIONS: frozenset[str] = frozenset({".pdf", ".doc", ".docx", ".xls", ".xlsx", ".txt"})

# Leading bytes expected for each container family
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_SIGNATURE = b"PK"
PDF_SIGNATURE = b"%PDF"

_EXTENSION_MEDIA_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".txt": "text/plain",
}


def guess_media_type(filename: str) -> str:
    """Guess a media type from a filename; empty string if unknown."""
    ext = PurePath(filename).suffix.lower()
    if ext in _EXTENSION_MEDIA_TYPES:
        return _EXTENSION_MEDIA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or ""


def check_document_upload(blob: MediaBlob, config: RuntimeConfig | None = None) -> None:
    """
    Validate a single document upload.

    Raises:
        UploadRejected: If the file is too large, has a disallowed
            extension, or its bytes do not match the declared type
    """
    cfg = config or get_global_config()

    if len(blob.data) > cfg.max_document_bytes:
        raise UploadRejected(
            f"{blob.input_id}: size {len(blob.data):,} bytes exceeds "
            f"{cfg.max_document_bytes // (1024 * 1024)}MB limit"
        )

    ext = PurePath(blob.filename).suffix.lower() if blob.filename else ""
    if ext and ext not in DOCUMENT_EXTENSIONS:
        raise UploadRejected(
            f"{blob.input_id}: extension {ext} not allowed "
            f"(allowed: {', '.join(sorted(DOCUMENT_EXTENSIONS))})"
        )

    fmt = classify(blob.media_type)
    if fmt is not DocumentFormat.UNSUPPORTED and not signature_matches(fmt, blob.data):
        raise UploadRejected(f"{blob.input_id}: content does not look like {fmt.value}")


def check_image_upload(blob: MediaBlob, config: RuntimeConfig | None = None) -> None:
    """Validate a single image upload against the document size ceiling."""
    cfg = config or get_global_config()
    if len(blob.data) > cfg.max_document_bytes:
        raise UploadRejected(
            f"{blob.input_id}: size {len(blob.data):,} bytes exceeds "
            f"{cfg.max_document_bytes // (1024 * 1024)}MB limit"
        )
    media_type = media_type_essence(blob.media_type)
    if media_type and classify_image(media_type) is ImageFormat.UNSUPPORTED:
        raise UploadRejected(f"{blob.input_id}: {media_type} is not an accepted image type")


def check_request_size(blobs: Sequence[MediaBlob], config: RuntimeConfig | None = None) -> None:
    """Reject a request whose combined payload exceeds the request ceiling."""
    cfg = config or get_global_config()
    total = sum(len(blob.data) for blob in blobs)
    if total > cfg.max_request_bytes:
        raise UploadRejected(
            f"Request size {total:,} bytes exceeds "
            f"{cfg.max_request_bytes // (1024 * 1024)}MB limit"
        )


def signature_matches(fmt: DocumentFormat, data: bytes) -> bool:
    """Check leading bytes against the container a format is stored in."""
    if fmt is DocumentFormat.PDF:
        # Some writers emit a few junk bytes before the header
        return PDF_SIGNATURE in data[:1024]
    if fmt in (DocumentFormat.DOCX, DocumentFormat.XLSX):
        return data.startswith(ZIP_SIGNATURE)
    if fmt in (DocumentFormat.DOC, DocumentFormat.XLS):
        # Mislabelled OOXML files are accepted; the extractors cope
        return data.startswith(OLE2_SIGNATURE) or data.startswith(ZIP_SIGNATURE)
    return True


__all__ = [
    "DOCUMENT_EXTENSIONS",
    "DOCUMENT_MEDIA_TYPES",
    "IMAGE_MEDIA_TYPES",
    "guess_media_type",
    "check_document_upload",
    "check_image_upload",
    "check_request_size",
    "signature_matches",
]
