"""Data ingestion loaders for cycle-time exports."""

from .cycle_times import IngestionError, load_cycle_time_rows
from .utils import FieldReader, parse_minutes

__all__ = [
    "IngestionError",
    "load_cycle_time_rows",
    "FieldReader",
    "parse_minutes",
]
