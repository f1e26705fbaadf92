"""Data models for job application import and export."""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

MAX_TEXT_LENGTH = 100


class ApplicationStatus(str, Enum):
    """The six canonical application statuses."""

    APPLIED = "Applied"
    PHONE_SCREEN = "Phone Screen"
    TECHNICAL_INTERVIEW = "Technical Interview"
    FINAL_ROUND = "Final Round"
    OFFER = "Offer"
    REJECTED = "Rejected"


class DataRecord(BaseModel):
    """A validated job application, ready for persistence or export."""

    id: str = Field(min_length=1)
    company: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    role: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    date_applied: str
    status: ApplicationStatus
    visa_sponsorship: bool
    notes: Optional[str] = None
    resume_url: Optional[str] = None

    @field_validator("company", "role", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("date_applied")
    @classmethod
    def _canonical_date(cls, value: str) -> str:
        # Only the canonical YYYY-MM-DD form is accepted on the record itself
        if date.fromisoformat(value).isoformat() != value:
            raise ValueError(f"date_applied must be YYYY-MM-DD, got {value!r}")
        return value

    @field_validator("notes", "resume_url", mode="before")
    @classmethod
    def _drop_blank(cls, value: Any) -> Any:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def to_row(self) -> list[str]:
        """Convert to export row format: Company, Role, Date Applied, Status, Visa Sponsorship, Notes."""
        return [
            self.company,
            self.role,
            self.date_applied,
            self.status.value,
            "Yes" if self.visa_sponsorship else "No",
            self.notes or "",
        ]


class RowError(BaseModel):
    """A rejected row or field encountered during import."""

    row: int = Field(ge=0)
    field: Optional[str] = None
    message: str
    data: Any = None


class ImportProgress(BaseModel):
    """Progress snapshot emitted while an import streams rows."""

    loaded: int = 0
    total: int = 0
    rows_processed: int = 0
    errors: int = 0

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return round(min(self.loaded, self.total) / self.total * 100, 1)


class ImportResult(BaseModel):
    """Terminal outcome of one import call."""

    success: bool
    imported: list[DataRecord] = Field(default_factory=list)
    errors: list[RowError] = Field(default_factory=list)
    skipped: int = 0
    progress: ImportProgress = Field(default_factory=ImportProgress)
    aborted: bool = False
