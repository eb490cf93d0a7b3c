"""CSV export of the filtered audit trail."""

from __future__ import annotations

import csv
import io
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from .filters import canonical_attributes
from .models import AuditEvent

logger = logging.getLogger(__name__)

CSV_HEADER = ("id", "timestamp", "type", "attributes")
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
DEFAULT_EXPORT_PREFIX = "cognis-audit"


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: bytes
    row_count: int
    media_type: str = CSV_MEDIA_TYPE


def build_csv(events: Sequence[AuditEvent]) -> str:
    """Render events as CSV with every field quoted and rows separated by a bare newline."""
    output = io.StringIO(newline="")
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for event in events:
        writer.writerow(
            [
                event.id,
                event.timestamp,
                event.type,
                canonical_attributes(event.attributes),
            ]
        )
    # No terminator after the last row.
    return output.getvalue()[: -len("\n")]


def export_filename(now: datetime | None = None, prefix: str = DEFAULT_EXPORT_PREFIX) -> str:
    current = now or datetime.now(timezone.utc)
    return f"{prefix}-{int(current.timestamp() * 1000)}.csv"


def export_events(
    events: Sequence[AuditEvent],
    now: datetime | None = None,
    prefix: str = DEFAULT_EXPORT_PREFIX,
) -> CsvExport | None:
    """Build the export document, or None when there is nothing to export."""
    if not events:
        return None
    return CsvExport(
        filename=export_filename(now, prefix),
        content=build_csv(events).encode("utf-8"),
        row_count=len(events),
    )


def save_export(export: CsvExport, directory: str | Path) -> Path:
    """Write an export into ``directory`` and return the final path.

    The document is staged in a temporary file beside the target and renamed
    into place; the temporary file never outlives this call.
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / export.filename

    handle = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=target_dir,
        prefix=f".{export.filename}.",
        suffix=".part",
        delete=False,
    )
    staged = Path(handle.name)
    try:
        with handle:
            handle.write(export.content)
        os.replace(staged, target)
    finally:
        if staged.exists():
            staged.unlink()
    logger.info("audit_export_saved: %s rows to %s", export.row_count, target)
    return target
