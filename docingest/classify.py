"""
Media type classification.

Maps a caller-declared MIME type to one of two closed sets: the document
formats the extractors understand, and the image formats the transform
engine accepts. The declaration is trusted as given; byte sniffing only
happens at the upload boundary.
"""

from __future__ import annotations

from enum import Enum

from .errors import UnsupportedFormat


class ExtractorKind(str, Enum):
    """Extractor family responsible for a document format."""

    PDF = "pdf"
    WORD = "word"
    EXCEL = "excel"
    TEXT = "text"


class DocumentFormat(str, Enum):
    """Supported document formats, plus the catch-all UNSUPPORTED."""

    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    XLS = "xls"
    XLSX = "xlsx"
    TEXT = "txt"
    UNSUPPORTED = "unsupported"

    @property
    def kind(self) -> ExtractorKind | None:
        return _KINDS.get(self)

    @property
    def legacy(self) -> bool:
        """True for the pre-OOXML binary Office formats."""
        return self in (DocumentFormat.DOC, DocumentFormat.XLS)


class ImageFormat(str, Enum):
    """Image formats accepted as compress/convert input, plus UNSUPPORTED."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    GIF = "gif"
    BMP = "bmp"
    TIFF = "tiff"
    UNSUPPORTED = "unsupported"


_KINDS: dict[DocumentFormat, ExtractorKind] = {
    DocumentFormat.PDF: ExtractorKind.PDF,
    DocumentFormat.DOC: ExtractorKind.WORD,
    DocumentFormat.DOCX: ExtractorKind.WORD,
    DocumentFormat.XLS: ExtractorKind.EXCEL,
    DocumentFormat.XLSX: ExtractorKind.EXCEL,
    DocumentFormat.TEXT: ExtractorKind.TEXT,
}

DOCUMENT_MEDIA_TYPES: dict[str, DocumentFormat] = {
    "application/pdf": DocumentFormat.PDF,
    "application/msword": DocumentFormat.DOC,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentFormat.DOCX,
    "application/vnd.ms-excel": DocumentFormat.XLS,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": DocumentFormat.XLSX,
    "text/plain": DocumentFormat.TEXT,
}

IMAGE_MEDIA_TYPES: dict[str, ImageFormat] = {
    "image/png": ImageFormat.PNG,
    "image/jpeg": ImageFormat.JPEG,
    "image/jpg": ImageFormat.JPEG,
    "image/webp": ImageFormat.WEBP,
    "image/gif": ImageFormat.GIF,
    "image/bmp": ImageFormat.BMP,
    "image/tiff": ImageFormat.TIFF,
}


def media_type_essence(media_type: str) -> str:
    """Strip parameters such as "; charset=utf-8" and lowercase."""
    return (media_type or "").split(";", 1)[0].strip().lower()


def classify(media_type: str) -> DocumentFormat:
    """
    Classify a declared document media type.

    Parameters such as "; charset=utf-8" and letter case are ignored.
    Anything outside the supported set, images included, yields
    DocumentFormat.UNSUPPORTED; see classify_image for transform inputs.
    """
    return DOCUMENT_MEDIA_TYPES.get(media_type_essence(media_type), DocumentFormat.UNSUPPORTED)


def require_supported(media_type: str) -> DocumentFormat:
    """Classify a media type, raising UnsupportedFormat for unknown ones."""
    fmt = classify(media_type)
    if fmt is DocumentFormat.UNSUPPORTED:
        raise UnsupportedFormat(media_type)
    return fmt


def classify_image(media_type: str) -> ImageFormat:
    """Classify a declared image media type for the transform engine."""
    return IMAGE_MEDIA_TYPES.get(media_type_essence(media_type), ImageFormat.UNSUPPORTED)


def require_image(media_type: str) -> ImageFormat:
    """Classify an image media type, raising UnsupportedFormat for unknown ones."""
    fmt = classify_image(media_type)
    if fmt is ImageFormat.UNSUPPORTED:
        raise UnsupportedFormat(media_type)
    return fmt
