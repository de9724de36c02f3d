"""
Shared utilities for data ingestion: header matching, presence checks,
schema-tolerant field lookup, cycle-time parsing.
"""

import logging
import math
import numbers
import re
import unicodedata
from datetime import datetime, time, timedelta
from typing import Any

import pandas as pd

from ..config import EXCEL_EPOCH, FIELD_CANDIDATES, MINUTES_PER_DAY

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def normalise_header(name: Any) -> str:
    """Normalise a header cell for comparison.

    Applies Unicode NFC (so a composed and a decomposed "é" compare equal)
    and strips surrounding whitespace.
    """
    return unicodedata.normalize("NFC", str(name)).strip()


def is_present(val: Any) -> bool:
    """Return True unless the value is None, NaN/NaT or a blank string."""
    if val is None:
        return False
    if isinstance(val, str):
        return bool(val.strip())
    try:
        return not bool(pd.isna(val))
    except (TypeError, ValueError):
        return True


def cell_text(val: Any) -> str:
    """Render a cell value as label text ("12.0" stays "12")."""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def find_header_row(
    sheet,
    signature: set[str],
    max_rows: int = 20,
) -> int | None:
    """Scan an openpyxl sheet for the row containing signature strings.

    Returns the 1-based row index where at least two cells match values
    in `signature` (after header normalisation), or None if not found
    within `max_rows`.
    """
    for row_idx, values in enumerate(
        sheet.iter_rows(min_row=1, max_row=max_rows, values_only=True), start=1
    ):
        matches = 0
        for value in values:
            if value is not None and normalise_header(value) in signature:
                matches += 1
        if matches >= 2:
            return row_idx
    return None


class FieldReader:
    """Resolve logical fields against loosely-named row keys.

    Each logical field has an ordered list of candidate header names; the
    first candidate holding a present value wins. Row keys are matched
    after `normalise_header`, so spelling variants that only differ in
    Unicode composition or padding still resolve.
    """

    def __init__(self, candidates: dict[str, list[str]] | None = None):
        source = FIELD_CANDIDATES if candidates is None else candidates
        self.candidates: dict[str, tuple[str, ...]] = {
            field: tuple(normalise_header(key) for key in keys)
            for field, keys in source.items()
        }

    def signature(self) -> set[str]:
        """All candidate header names, used to locate the header row."""
        return {key for keys in self.candidates.values() for key in keys}

    def get(self, row: dict[str, Any], field: str, default: Any = None) -> Any:
        if field not in self.candidates:
            raise KeyError(f"Unknown field '{field}'")

        # Keys that only differ in padding or composition collapse; the
        # first present value wins
        normalised: dict[str, Any] = {}
        for k, v in row.items():
            key = normalise_header(k)
            if key not in normalised or (is_present(v) and not is_present(normalised[key])):
                normalised[key] = v
        for key in self.candidates[field]:
            val = normalised.get(key)
            if is_present(val):
                return val
        return default

    def text(self, row: dict[str, Any], field: str, default: str) -> str:
        """Like get(), but returns the value rendered as stripped text."""
        val = self.get(row, field)
        if val is None:
            return default
        return cell_text(val)


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_minutes(val: Any) -> float:
    """Convert a cycle-time cell to minutes.

    Accepted forms
    --------------
    - absent (None, NaN, blank)       -> 0
    - number or numeric text, no ":"  -> fraction of a day (x 1440)
    - "H:MM:SS" text (fields optional) -> h*60 + m + s/60; each field uses
      its leading integer, anything unparseable counts as 0
    - datetime.time / timedelta        -> duration in minutes
    - datetime                         -> minutes since the 1899-12-30
      spreadsheet epoch (durations of 24 h or more)

    Never raises. Negative or non-finite results are returned as 0.
    """
    if not is_present(val) or isinstance(val, bool):
        return 0.0

    if isinstance(val, datetime):
        if val.tzinfo is not None:
            val = val.replace(tzinfo=None)
        minutes = (val - datetime.fromisoformat(EXCEL_EPOCH)).total_seconds() / 60
    elif isinstance(val, time):
        minutes = (
            val.hour * 60
            + val.minute
            + val.second / 60
            + val.microsecond / 60_000_000
        )
    elif isinstance(val, timedelta):
        minutes = val.total_seconds() / 60
    elif isinstance(val, numbers.Real):
        minutes = float(val) * MINUTES_PER_DAY
    else:
        text = str(val).strip()
        minutes = None
        if ":" not in text:
            try:
                minutes = float(text) * MINUTES_PER_DAY
            except ValueError:
                minutes = None
        if minutes is None:
            parts = (text.split(":") + ["", ""])[:3]
            hours, mins, secs = (_leading_int(p) for p in parts)
            minutes = hours * 60 + mins + secs / 60

    if not math.isfinite(minutes) or minutes < 0:
        logger.debug("Coercing cycle time %r to 0 minutes", val)
        return 0.0
    return float(minutes)
