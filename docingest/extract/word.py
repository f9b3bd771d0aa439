"""
Word document extraction using python-docx.

The input is staged to disk first: legacy .doc files have to be
converted to .docx by LibreOffice, which only works on real files.
Text and images are then read in two independent passes over the
staged .docx. The staging area is removed however the passes end.
"""

from __future__ import annotations

import subprocess
import zipfile
from pathlib import Path

from docingest.errors import ExtractionError
from docingest.runtime import RuntimeConfig, get_global_config
from docingest.staging import StagingArea

from .base import EmbeddedImage, ExtractedDocument

# Namespaces for picture references in document.xml
_A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
_R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_V_NS = "urn:schemas-microsoft-com:vml"
_MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"

_BLIP = f"{{{_A_NS}}}blip"
_IMAGEDATA = f"{{{_V_NS}}}imagedata"
_FALLBACK = f"{{{_MC_NS}}}Fallback"
_R_EMBED = f"{{{_R_NS}}}embed"
_R_ID = f"{{{_R_NS}}}id"


def extract_word(
    data: bytes,
    *,
    legacy: bool = False,
    config: RuntimeConfig | None = None,
) -> ExtractedDocument:
    """
    Extract text and embedded images from Word bytes.

    Args:
        data: Raw DOC or DOCX file bytes
        legacy: True when the caller declared application/msword
        config: Runtime configuration (staging root, LibreOffice binary)

    Returns:
        ExtractedDocument with body text and images in document order

    Raises:
        ExtractionError: If either pass fails
        StagingFailure: If the staging directory cannot be used
    """
    cfg = config or get_global_config()
    fmt = "doc" if legacy else "docx"

    with StagingArea(cfg.staging_root) as staging:
        source = staging.write(f"source.{fmt}", data)

        if legacy and not zipfile.is_zipfile(source):
            source = _convert_legacy(source, staging, cfg)

        text = _extract_text(source, fmt)
        images = _extract_images(source, fmt)

    return ExtractedDocument(text=text, images=tuple(images))


# -----------------------------------------------------------------------------
# Passes
# -----------------------------------------------------------------------------


def _open(path: Path, fmt: str):  # noqa: ANN202
    """Open a staged .docx, mapping package errors to ExtractionError."""
    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError

    try:
        return Document(str(path))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise ExtractionError(fmt, ExtractionError.MALFORMED, f"Cannot open document: {e}") from e


def _extract_text(path: Path, fmt: str) -> str:
    """Read paragraphs and table rows from the body in document order."""
    from docx.table import Table

    doc = _open(path, fmt)
    text_parts: list[str] = []

    for block in doc.iter_inner_content():
        if isinstance(block, Table):
            for row in block.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    text_parts.append(" | ".join(cells))
        else:
            text = block.text.strip()
            if text:
                text_parts.append(text)

    return "\n".join(text_parts)


def _extract_images(path: Path, fmt: str) -> list[EmbeddedImage]:
    """Resolve every picture reference in the body, in document order."""
    doc = _open(path, fmt)
    related = doc.part.related_parts
    images: list[EmbeddedImage] = []

    for element in doc.element.body.iter(_BLIP, _IMAGEDATA):
        if next(element.iterancestors(_FALLBACK), None) is not None:
            # mc:Fallback repeats the picture already read from mc:Choice
            continue

        rel_id = element.get(_R_EMBED) if element.tag == _BLIP else element.get(_R_ID)
        if not rel_id:
            # Linked (external) pictures carry no embedded bytes
            continue

        part = related.get(rel_id)
        if part is None:
            raise ExtractionError(
                fmt, ExtractionError.MALFORMED, f"Picture references missing part {rel_id}"
            )

        images.append(EmbeddedImage.from_part(part.blob, part.content_type))

    return images


# -----------------------------------------------------------------------------
# Legacy conversion
# -----------------------------------------------------------------------------


def _convert_legacy(source: Path, staging: StagingArea, config: RuntimeConfig) -> Path:
    """
    Convert a staged .doc to .docx with headless LibreOffice.

    The output and the LibreOffice user profile both live inside the
    staging area so parallel conversions do not collide.
    """
    soffice = config.resolve_soffice()
    if not soffice:
        raise ExtractionError(
            "doc", ExtractionError.INTERNAL, "LibreOffice (soffice) is required for .doc files"
        )

    outdir = staging.subdir("converted")
    profile = staging.subdir("profile")

    try:
        subprocess.run(
            [
                soffice,
                f"-env:UserInstallation={profile.resolve().as_uri()}",
                "--headless",
                "--convert-to",
                "docx",
                "--outdir",
                str(outdir),
                str(source),
            ],
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=config.conversion_timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ExtractionError("doc", ExtractionError.INTERNAL, "LibreOffice conversion timed out") from e
    except subprocess.CalledProcessError as e:
        detail = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
        raise ExtractionError(
            "doc", ExtractionError.MALFORMED, f"LibreOffice could not convert document: {detail}"
        ) from e
    except OSError as e:
        raise ExtractionError("doc", ExtractionError.INTERNAL, f"Cannot run LibreOffice: {e}") from e

    converted = outdir / f"{source.stem}.docx"
    if not converted.exists():
        raise ExtractionError("doc", ExtractionError.MALFORMED, "LibreOffice produced no output")
    return converted
