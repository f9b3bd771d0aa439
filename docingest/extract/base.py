"""Base types for document extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath


# Content type -> file extension for embedded images
IMAGE_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/x-ms-bmp": "bmp",
    "image/tiff": "tif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/x-emf": "emf",
    "image/x-wmf": "wmf",
    "image/x-icon": "ico",
}

FALLBACK_EXTENSION = "bin"


def extension_for(content_type: str) -> str:
    """Map a content type to a file extension, falling back to 'bin'."""
    return IMAGE_EXTENSIONS.get(content_type.strip().lower(), FALLBACK_EXTENSION)


@dataclass(frozen=True)
class MediaBlob:
    """An uploaded file: raw bytes plus the caller's declared media type."""

    data: bytes
    media_type: str
    filename: str = ""

    @property
    def stem(self) -> str:
        """Filename without directory or extension."""
        return PurePath(self.filename).stem if self.filename else "upload"

    @property
    def input_id(self) -> str:
        return self.filename or "<unnamed>"


@dataclass(frozen=True)
class EmbeddedImage:
    """An image embedded in a document."""

    data: bytes
    content_type: str
    extension: str

    @classmethod
    def from_part(cls, data: bytes, content_type: str) -> "EmbeddedImage":
        return cls(data=data, content_type=content_type, extension=extension_for(content_type))


@dataclass(frozen=True)
class ExtractedDocument:
    """Result of document extraction."""

    text: str
    images: tuple[EmbeddedImage, ...] = field(default_factory=tuple)
