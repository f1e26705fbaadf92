"""CSV export of job applications."""

import logging
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

from .models import DataRecord

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ("Company", "Role", "Date Applied", "Status", "Visa Sponsorship", "Notes")
EXPORT_PREFIX = "krisis-applications"
CSV_MIME_TYPE = "text/csv"
UTF8_BOM = "\ufeff"

_NEEDS_QUOTING = (",", '"', "\n", "\r")


def escape_csv_field(value: Union[str, int, float, bool]) -> str:
    """Escape a single field per RFC 4180."""
    text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def applications_to_csv(records: Iterable[DataRecord], include_headers: bool = True) -> str:
    """Serialize records with a fixed column order."""
    lines = []

    if include_headers:
        lines.append(",".join(escape_csv_field(h) for h in EXPORT_HEADERS))

    for record in records:
        lines.append(",".join(escape_csv_field(v) for v in record.to_row()))

    return "\n".join(lines)


def export_filename(prefix: str = EXPORT_PREFIX, today: Optional[date] = None) -> str:
    """Date-stamped download name, e.g. krisis-applications-2024-01-15.csv."""
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}.csv"


def write_csv(content: str, path: Path) -> Path:
    """Write CSV text with a UTF-8 byte-order mark for spreadsheet tools."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(UTF8_BOM + content)
    return path


def export_applications(
    records: list[DataRecord],
    output_dir: Path,
    filename: Optional[str] = None,
    include_headers: bool = True,
    prefix: str = EXPORT_PREFIX,
) -> Optional[Path]:
    """Export records to a CSV file. Returns None when there is nothing to export."""
    if not records:
        logger.info("No data to export")
        return None

    content = applications_to_csv(records, include_headers=include_headers)
    path = write_csv(content, Path(output_dir) / (filename or export_filename(prefix)))

    logger.info(f"Exported {len(records)} applications to {path}")
    return path
