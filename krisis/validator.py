"""Row validation: turn one normalized CSV row into a DataRecord or errors."""

import logging
import time
import uuid
from typing import Any, Mapping, Optional

from .models import MAX_TEXT_LENGTH, DataRecord, RowError
from .normalize import normalize_status, parse_date, resolve_visa_sponsorship

logger = logging.getLogger(__name__)

STATUS_CHOICES = "Applied, Phone Screen, Technical Interview, Final Round, Offer, Rejected"


def generate_record_id() -> str:
    """Time-prefixed id with a random suffix, unique within an import run."""
    return f"imported-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _check_required_text(
    row: Mapping[str, Any],
    field: str,
    label: str,
    row_number: int,
) -> list[RowError]:
    raw = row.get(field)
    text = _clean_text(raw)

    if not text:
        return [RowError(row=row_number, field=field, message=f"{label} is required", data=raw)]

    if len(text) > MAX_TEXT_LENGTH:
        return [
            RowError(
                row=row_number,
                field=field,
                message=f"{label} must be at most {MAX_TEXT_LENGTH} characters",
                data=raw,
            )
        ]

    return []


def validate_row(
    row: Mapping[str, Any],
    row_number: int,
) -> tuple[Optional[DataRecord], list[RowError]]:
    """Validate a row keyed by normalized header names.

    Every rule is checked so a single row can report several field errors.
    Returns ``(record, [])`` on success and ``(None, errors)`` otherwise.
    """
    errors: list[RowError] = []

    errors.extend(_check_required_text(row, "company", "Company", row_number))
    errors.extend(_check_required_text(row, "role", "Role", row_number))

    raw_date = row.get("dateApplied")
    date_applied = parse_date(raw_date)
    if date_applied is None:
        errors.append(
            RowError(
                row=row_number,
                field="dateApplied",
                message="Invalid date format. Use YYYY-MM-DD, MM/DD/YYYY, or DD/MM/YYYY",
                data=raw_date,
            )
        )

    raw_status = row.get("status")
    status = normalize_status(raw_status)
    if status is None:
        errors.append(
            RowError(
                row=row_number,
                field="status",
                message=f"Invalid status. Must be one of: {STATUS_CHOICES}",
                data=raw_status,
            )
        )

    if errors:
        logger.debug(f"Row {row_number} rejected with {len(errors)} error(s)")
        return None, errors

    company = _clean_text(row.get("company"))
    record = DataRecord(
        id=_clean_text(row.get("id")) or generate_record_id(),
        company=company,
        role=_clean_text(row.get("role")),
        date_applied=date_applied,
        status=status,
        visa_sponsorship=resolve_visa_sponsorship(row.get("visaSponsorship"), company),
        notes=row.get("notes"),
        resume_url=row.get("resumeUrl"),
    )
    return record, []
