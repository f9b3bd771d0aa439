"""Shared fixtures: every document and image is built at test time."""

from __future__ import annotations

import datetime as dt
import io
import struct
from dataclasses import dataclass
from pathlib import Path

import pytest

from docingest.runtime import RuntimeConfig

# BIFF8 record codes
_BOF = 0x0809
_EOF = 0x000A
_DATEMODE = 0x0022
_XF = 0x00E0
_BOUNDSHEET = 0x0085
_NUMBER = 0x0203
_LABEL = 0x0204
_BOOLERR = 0x0205

_GLOBALS_STREAM = 0x0005
_WORKSHEET_STREAM = 0x0010
_DATE_XF = 1


@dataclass(frozen=True)
class XlsError:
    """An error cell, e.g. XlsError(0x07) for #DIV/0!."""

    code: int


def make_image(
    color: tuple[int, ...] | int = (200, 30, 30),
    size: tuple[int, int] = (16, 16),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-color image."""
    from PIL import Image

    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


def make_docx(blocks: list) -> bytes:
    """
    Build a .docx from a list of blocks.

    Each block is a str (paragraph), bytes (picture) or a list of rows
    (table).
    """
    from docx import Document
    from docx.shared import Inches

    doc = Document()
    for block in blocks:
        if isinstance(block, str):
            doc.add_paragraph(block)
        elif isinstance(block, bytes):
            doc.add_picture(io.BytesIO(block), width=Inches(0.5))
        else:
            table = doc.add_table(rows=len(block), cols=len(block[0]))
            for r, row in enumerate(block):
                for c, value in enumerate(row):
                    table.cell(r, c).text = value
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def make_xls(sheets: list[tuple[str, list[list]]]) -> bytes:
    """
    Build a legacy .xls workbook as a bare BIFF8 Workbook stream.

    xlrd reads the stream directly when the OLE2 container is absent.
    Cells may be str, bool, int/float, datetime.date or XlsError.
    """

    def record(code: int, data: bytes = b"") -> bytes:
        return struct.pack("<HH", code, len(data)) + data

    def bof(stream: int) -> bytes:
        return record(_BOF, struct.pack("<HHHHII", 0x0600, stream, 0, 1997, 0, 0))

    def xf(format_key: int) -> bytes:
        return record(_XF, struct.pack("<HHHBBBBIiH", 0, format_key, 0, 0, 0, 0, 0, 0, 0, 0))

    def cell(row: int, col: int, value) -> bytes:  # noqa: ANN001
        if isinstance(value, str):
            raw = value.encode("latin-1")
            return record(_LABEL, struct.pack("<HHHHB", row, col, 0, len(raw), 0) + raw)
        if isinstance(value, bool):
            return record(_BOOLERR, struct.pack("<HHHBB", row, col, 0, int(value), 0))
        if isinstance(value, XlsError):
            return record(_BOOLERR, struct.pack("<HHHBB", row, col, 0, value.code, 1))
        if isinstance(value, dt.date):
            serial = (value - dt.date(1899, 12, 30)).days
            return record(_NUMBER, struct.pack("<HHHd", row, col, _DATE_XF, serial))
        return record(_NUMBER, struct.pack("<HHHd", row, col, 0, value))

    bodies = []
    for _, rows in sheets:
        cells = b"".join(cell(r, c, value) for r, row in enumerate(rows) for c, value in enumerate(row))
        bodies.append(bof(_WORKSHEET_STREAM) + cells + record(_EOF))

    # XF 0 is "General", XF 1 uses built-in date format 14
    head = bof(_GLOBALS_STREAM) + record(_DATEMODE, struct.pack("<H", 0)) + xf(0) + xf(14)
    names = [name.encode("latin-1") for name, _ in sheets]
    offset = len(head) + sum(4 + 8 + len(raw) for raw in names) + len(record(_EOF))

    boundsheets = b""
    for raw, body in zip(names, bodies):
        boundsheets += record(_BOUNDSHEET, struct.pack("<iBBBB", offset, 0, 0, len(raw), 0) + raw)
        offset += len(body)

    return head + boundsheets + record(_EOF) + b"".join(bodies)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image((200, 30, 30), fmt="PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image((30, 30, 200), fmt="JPEG")


@pytest.fixture
def ordered_pictures() -> list[bytes]:
    """Three distinct PNGs: red, green, blue, each a different size."""
    return [
        make_image((255, 0, 0), size=(10, 10)),
        make_image((0, 255, 0), size=(12, 12)),
        make_image((0, 0, 255), size=(14, 14)),
    ]


@pytest.fixture
def docx_bytes(ordered_pictures: list[bytes]) -> bytes:
    red, green, blue = ordered_pictures
    return make_docx(
        [
            "Quarterly report",
            red,
            "Revenue grew this quarter.",
            [["Region", "Total"], ["North", "42"]],
            green,
            "Closing remarks",
            blue,
        ]
    )


@pytest.fixture
def xlsx_bytes() -> bytes:
    from openpyxl import Workbook

    wb = Workbook()
    first = wb.active
    first.title = "A"
    first.append(["name", "qty"])
    first.append(["apple", 3])
    second = wb.create_sheet("B")
    second.append(["city", "note"])
    second.append(["Oslo", "cold, windy"])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def xls_bytes() -> bytes:
    return make_xls(
        [
            ("A", [["name", "qty", "ok"], ["apple", 3, True]]),
            ("B", [["when", "ratio"], [dt.date(2024, 2, 29), XlsError(0x07)]]),
        ]
    )


@pytest.fixture
def pdf_bytes() -> bytes:
    import fitz

    doc = fitz.open()
    for text in ("First page text", "Second page text"):
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    root = tmp_path / "staging"
    root.mkdir()
    return root


@pytest.fixture
def config(staging_root: Path) -> RuntimeConfig:
    return RuntimeConfig(staging_root=str(staging_root), parallel_workers=3)


@pytest.fixture
def docx_factory():
    return make_docx


@pytest.fixture
def image_factory():
    return make_image
