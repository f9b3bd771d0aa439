"""Spreadsheet extraction using openpyxl (XLSX) and xlrd (legacy XLS)."""

from __future__ import annotations

import csv
import datetime as dt
import io
import struct
import zipfile
from typing import Any, Iterable, Iterator

from docingest.errors import ExtractionError

from .base import ExtractedDocument


def extract_xlsx(data: bytes) -> ExtractedDocument:
    """
    Extract every sheet of an OOXML workbook as CSV text.

    Args:
        data: Raw XLSX file bytes

    Returns:
        ExtractedDocument with one "Sheet: <name>" block per sheet
    """
    from openpyxl import load_workbook
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise ExtractionError("xlsx", ExtractionError.MALFORMED, f"Cannot open workbook: {e}") from e

    try:
        sheets = [
            (ws.title, render_csv(ws.iter_rows(values_only=True)))
            for ws in wb.worksheets
        ]
    except (KeyError, ValueError, zipfile.BadZipFile) as e:
        raise ExtractionError("xlsx", ExtractionError.MALFORMED, f"Cannot read worksheet: {e}") from e
    finally:
        wb.close()

    return ExtractedDocument(text=join_sheets(sheets))


def extract_xls(data: bytes) -> ExtractedDocument:
    """
    Extract every sheet of a legacy BIFF workbook as CSV text.

    Args:
        data: Raw XLS file bytes

    Returns:
        ExtractedDocument with one "Sheet: <name>" block per sheet
    """
    import xlrd

    if zipfile.is_zipfile(io.BytesIO(data)):
        # Declared as .xls but actually OOXML
        return extract_xlsx(data)

    try:
        wb = xlrd.open_workbook(file_contents=data)
    except (
        xlrd.XLRDError,
        xlrd.compdoc.CompDocError,
        ValueError,
        IndexError,
        AssertionError,
        struct.error,
    ) as e:
        raise ExtractionError("xls", ExtractionError.MALFORMED, f"Cannot open workbook: {e}") from e

    def rows(sheet) -> Iterator[list[Any]]:  # noqa: ANN001
        for row_idx in range(sheet.nrows):
            yield [_xls_value(cell, wb.datemode) for cell in sheet.row(row_idx)]

    try:
        sheets = [(sheet.name, render_csv(rows(sheet))) for sheet in wb.sheets()]
    except (xlrd.XLRDError, ValueError, IndexError, KeyError, struct.error) as e:
        raise ExtractionError("xls", ExtractionError.MALFORMED, f"Cannot read worksheet: {e}") from e
    finally:
        wb.release_resources()

    return ExtractedDocument(text=join_sheets(sheets))


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------


def join_sheets(sheets: list[tuple[str, str]]) -> str:
    """Join rendered sheets in workbook order, each under its name header."""
    blocks = [f"Sheet: {name}\n{body}".rstrip("\n") for name, body in sheets]
    return "\n\n".join(blocks)


def render_csv(rows: Iterable[Iterable[Any]]) -> str:
    """Render rows of cell values as CSV text."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in rows:
        writer.writerow([format_cell(value) for value in row])
    return buf.getvalue()


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    return str(value)


def _xls_value(cell, datemode: int) -> Any:  # noqa: ANN001
    """Convert an xlrd cell to a plain Python value."""
    import xlrd

    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#ERR")
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
        except (xlrd.xldate.XLDateError, ValueError, OverflowError):
            return cell.value
    return cell.value
