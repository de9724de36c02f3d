"""
Loader for cycle-time exports (one row per produced part / event).

Accepted sources: .xlsx workbooks (first sheet) and .csv files, given as
a path or as an open binary file object (e.g. a Streamlit upload).

The header row is usually row 1, but some exports carry a title block
above it; the loader scans the first rows of the sheet for the row that
matches known column names and falls back to row 1.
"""

import logging
from pathlib import Path
from typing import Any, BinaryIO

import openpyxl
import pandas as pd

from ..config import SUPPORTED_EXTENSIONS
from .utils import FieldReader, find_header_row, is_present

logger = logging.getLogger(__name__)

Source = str | Path | BinaryIO


class IngestionError(Exception):
    """Raised when an uploaded file cannot be read into rows."""


def source_display_name(source: Source, name: str | None) -> str:
    if name:
        return name
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "<upload>")


def load_cycle_time_rows(source: Source, name: str | None = None) -> list[dict[str, Any]]:
    """Read a cycle-time export into a list of flat row dicts.

    Parameters
    ----------
    source : Path or binary file object.
    name : Display/file name; its extension selects the reader. Defaults
           to the path (or the file object's `name`).

    Returns
    -------
    One dict per non-empty data row, keyed by the raw header text. Empty
    cells are None.

    Raises
    ------
    IngestionError if the extension is unsupported or the file cannot
    be parsed.
    """
    display_name = source_display_name(source, name)
    suffix = Path(display_name).suffix.lower()

    if suffix not in SUPPORTED_EXTENSIONS:
        raise IngestionError(
            f"Unsupported file type '{suffix or display_name}'. "
            f"Expected one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    if suffix == ".csv":
        rows = _read_csv(source, display_name)
    else:
        rows = _read_xlsx(source, display_name)

    if not rows:
        logger.warning("No data rows found in %s", display_name)
    else:
        logger.info("Loaded %d rows from %s", len(rows), display_name)
    return rows


def _read_xlsx(source: Source, display_name: str) -> list[dict[str, Any]]:
    """Read the first worksheet of a workbook.

    Assumptions
    -----------
    - Data lives on the first sheet.
    - The header row is the first of the top 20 rows with at least two
      known column names; otherwise row 1.
    - Blank rows are skipped; columns without a header are dropped.
    """
    try:
        wb = openpyxl.load_workbook(source, data_only=True)
    except Exception as exc:
        logger.exception("Failed to open workbook: %s", display_name)
        raise IngestionError(f"Could not read workbook '{display_name}'") from exc

    try:
        ws = wb.worksheets[0]

        header_row = find_header_row(ws, FieldReader().signature())
        if header_row is None:
            logger.warning(
                "No known header found in %s, using row 1", display_name,
            )
            header_row = 1

        header_values = next(
            ws.iter_rows(min_row=header_row, max_row=header_row, values_only=True),
            (),
        )
        headers = [str(h).strip() if h is not None else None for h in header_values]

        rows = []
        for values in ws.iter_rows(min_row=header_row + 1, values_only=True):
            record = {
                header: value
                for header, value in zip(headers, values)
                if header
            }
            if any(is_present(v) for v in record.values()):
                rows.append(record)
    finally:
        wb.close()

    return rows


def _read_csv(source: Source, display_name: str) -> list[dict[str, Any]]:
    """Read a CSV export.

    The delimiter is sniffed (exports use "," or ";"), a UTF-8 BOM is
    tolerated and every cell is kept as text so time strings are not
    reinterpreted.
    """
    try:
        df = pd.read_csv(
            source,
            sep=None,
            engine="python",
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        return []
    except Exception as exc:
        logger.exception("Failed to read CSV: %s", display_name)
        raise IngestionError(f"Could not read CSV file '{display_name}'") from exc

    df.columns = [str(c).strip() for c in df.columns]
    df = df.loc[:, [not c.startswith("Unnamed:") for c in df.columns]]

    rows = []
    for record in df.to_dict(orient="records"):
        record = {k: (v if is_present(v) else None) for k, v in record.items()}
        if any(v is not None for v in record.values()):
            rows.append(record)
    return rows
