"""
Import pipeline: read one uploaded file, then aggregate it.
"""

import asyncio
import logging

from .loaders import load_cycle_time_rows
from .loaders.cycle_times import Source, source_display_name
from .models import Snapshot
from .transforms import process_rows

logger = logging.getLogger(__name__)


async def import_file(source: Source, name: str | None = None) -> Snapshot:
    """Read a cycle-time export and return the snapshot built from it.

    The workbook read runs in a worker thread; aggregation runs on the
    caller's loop once the rows are available. Raises IngestionError
    when the file cannot be read.
    """
    display_name = source_display_name(source, name)
    rows = await asyncio.to_thread(load_cycle_time_rows, source, display_name)
    snapshot = process_rows(rows, source_name=display_name)
    logger.info("Imported %s", display_name)
    return snapshot
