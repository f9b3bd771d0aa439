"""
Image transforms using Pillow.

Two operations, each applied to one image at a time:
- compress: re-encode at a caller-supplied quality into the configured
  lossy format (JPEG unless the runtime config says otherwise)
- convert: re-encode into PNG, JPEG or WEBP

Parameters are validated with pydantic when a TransformRequest is
built, so a bad quality or target format fails the whole request
before any image is decoded.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Iterable, Sequence, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from docingest.classify import require_image
from docingest.errors import InvalidRequest, TransformError
from docingest.extract.base import MediaBlob
from docingest.runtime import RuntimeConfig, get_global_config

MIN_QUALITY = 1
MAX_QUALITY = 100
DEFAULT_QUALITY = 80


class TransformKind(str, Enum):
    COMPRESS = "compress"
    CONVERT = "convert"


class TargetFormat(str, Enum):
    """Raster formats an image can be converted to."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def pil_format(self) -> str:
        return self.value.upper()

    @property
    def extension(self) -> str:
        return "jpg" if self is TargetFormat.JPEG else self.value

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"

    @property
    def lossy(self) -> bool:
        return self is not TargetFormat.PNG

    @classmethod
    def parse(cls, value: str | "TargetFormat") -> "TargetFormat":
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        if name == "jpg":
            name = "jpeg"
        return cls(name)


# =============================================================================
# Request validation
# =============================================================================


class CompressOptions(BaseModel):
    quality: int = Field(DEFAULT_QUALITY, ge=MIN_QUALITY, le=MAX_QUALITY)


class ConvertOptions(BaseModel):
    format: TargetFormat

    @field_validator("format", mode="before")
    @classmethod
    def _accept_jpg(cls, value: object) -> object:
        if isinstance(value, str):
            return TargetFormat.parse(value)
        return value


TransformOptions = Union[CompressOptions, ConvertOptions]


@dataclass(frozen=True)
class TransformRequest:
    """A batch of images plus one validated operation to apply to each."""

    items: tuple[MediaBlob, ...]
    kind: TransformKind
    options: TransformOptions

    @classmethod
    def compress(cls, items: Sequence[MediaBlob], quality: int | None = None) -> "TransformRequest":
        """Build a compress request, rejecting quality outside [1, 100]."""
        raw = {} if quality is None else {"quality": quality}
        return cls(tuple(items), TransformKind.COMPRESS, _validate(CompressOptions, raw))

    @classmethod
    def convert(cls, items: Sequence[MediaBlob], format: str | TargetFormat) -> "TransformRequest":
        """Build a convert request, rejecting targets other than png/jpeg/webp."""
        return cls(tuple(items), TransformKind.CONVERT, _validate(ConvertOptions, {"format": format}))


def _validate(model: type[BaseModel], raw: dict) -> BaseModel:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidRequest(f"Invalid transform parameters: {problems}") from e


# =============================================================================
# Engine
# =============================================================================


@dataclass(frozen=True)
class TransformedImage:
    """Encoded output of one transform."""

    data: bytes
    format: TargetFormat
    filename: str

    @property
    def content_type(self) -> str:
        return self.format.content_type


def transform_one(
    blob: MediaBlob,
    kind: TransformKind,
    options: TransformOptions,
    config: RuntimeConfig | None = None,
    *,
    filename: str | None = None,
) -> TransformedImage:
    """
    Apply one transform to one image.

    A declared media type must be an accepted image type; an empty one
    is left to the decoder. ``filename`` overrides the artifact name,
    which otherwise comes from output_name.

    Raises:
        UnsupportedFormat: If the declared media type is not an image type
        TransformError: If the image cannot be decoded or encoded
        InvalidRequest: If the options do not match the transform kind
    """
    cfg = config or get_global_config()
    target = target_format(kind, options, cfg)

    if blob.media_type:
        require_image(blob.media_type)

    if kind is TransformKind.COMPRESS:
        data = compress_image(blob.data, options.quality, target)
    else:
        data = convert_image(blob.data, target, quality=cfg.default_quality)

    return TransformedImage(data=data, format=target, filename=filename or output_name(blob, target))


def target_format(kind: TransformKind, options: TransformOptions, config: RuntimeConfig) -> TargetFormat:
    """Resolve the output format of a transform before any image is touched."""
    if kind is TransformKind.COMPRESS:
        if not isinstance(options, CompressOptions):
            raise InvalidRequest("compress requires CompressOptions")
        return TargetFormat.parse(config.compress_format)
    if kind is TransformKind.CONVERT:
        if not isinstance(options, ConvertOptions):
            raise InvalidRequest("convert requires ConvertOptions")
        return options.format
    raise InvalidRequest(f"Unknown transform kind: {kind!r}")


def compress_image(data: bytes, quality: int, target: TargetFormat = TargetFormat.JPEG) -> bytes:
    """
    Re-encode an image at the given quality.

    Quality is checked before the image is decoded.
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidRequest(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidRequest(f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
    if not target.lossy:
        raise InvalidRequest(f"{target.value} is not a lossy format")

    return _encode(_decode(data), target, quality)


def convert_image(data: bytes, target: TargetFormat, *, quality: int = DEFAULT_QUALITY) -> bytes:
    """Re-encode an image in another raster format."""
    return _encode(_decode(data), target, quality)


def output_name(blob: MediaBlob, target: TargetFormat) -> str:
    """Name for a transformed artifact: original stem plus target extension."""
    stem = PurePath(blob.filename).stem if blob.filename else "image"
    return f"{stem}.{target.extension}"


def unique_names(names: Iterable[str]) -> list[str]:
    """
    Make artifact names distinct within one batch, keeping input order.

    The first occurrence keeps its name; later ones get "_2", "_3", ...
    before the extension, skipping any name already taken.
    """
    taken: set[str] = set()
    result: list[str] = []
    for name in names:
        candidate = name
        path = PurePath(name)
        n = 2
        while candidate.lower() in taken:
            candidate = f"{path.stem}_{n}{path.suffix}"
            n += 1
        taken.add(candidate.lower())
        result.append(candidate)
    return result


# -----------------------------------------------------------------------------
# Pillow helpers
# -----------------------------------------------------------------------------


def _decode(data: bytes):  # noqa: ANN202
    from PIL import Image

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except Image.DecompressionBombError as e:
        raise TransformError("decode", f"Image too large: {e}") from e
    except (OSError, ValueError, SyntaxError) as e:
        # UnidentifiedImageError is an OSError; truncated data raises OSError
        raise TransformError("decode", f"Cannot decode image: {e}") from e
    return img


def _encode(img, target: TargetFormat, quality: int) -> bytes:  # noqa: ANN001
    prepared = _prepare_mode(img, target)
    buf = io.BytesIO()

    save_kwargs: dict = {}
    if target is TargetFormat.JPEG:
        save_kwargs = {"quality": quality, "optimize": True}
    elif target is TargetFormat.WEBP:
        save_kwargs = {"quality": quality}
    elif target is TargetFormat.PNG:
        save_kwargs = {"optimize": True}

    try:
        prepared.save(buf, format=target.pil_format, **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise TransformError("encode", f"Cannot encode {target.value}: {e}") from e
    return buf.getvalue()


def _prepare_mode(img, target: TargetFormat):  # noqa: ANN001, ANN202
    """Convert the image to a pixel mode the target encoder accepts."""
    from PIL import Image

    has_alpha = img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )

    if target is TargetFormat.JPEG:
        if has_alpha:
            # JPEG has no alpha channel; flatten onto white
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if img.mode not in ("RGB", "L"):
            return img.convert("RGB")
        return img

    if target is TargetFormat.WEBP:
        if has_alpha:
            return img.convert("RGBA") if img.mode != "RGBA" else img
        return img.convert("RGB") if img.mode != "RGB" else img

    # PNG
    if img.mode in ("CMYK", "YCbCr", "LAB", "HSV", "F"):
        return img.convert("RGB")
    return img
