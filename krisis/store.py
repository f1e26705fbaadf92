"""Application storage using SQLite database."""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import DataRecord

logger = logging.getLogger(__name__)

DB_PATH = Path(__file__).parent.parent / "data" / "applications.sqlite"
BATCH_SIZE = 500


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Get SQLite database connection."""
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Optional[Path] = None) -> None:
    """Initialize database schema."""
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS applications (
                owner_id TEXT NOT NULL,
                id TEXT NOT NULL,
                company TEXT NOT NULL,
                role TEXT NOT NULL,
                status TEXT NOT NULL,
                date_applied TEXT NOT NULL,
                visa_sponsorship INTEGER NOT NULL,
                notes TEXT,
                resume_url TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (owner_id, id)
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_owner_date
            ON applications (owner_id, date_applied)
        """)
        conn.commit()
        logger.debug("Database initialized")
    finally:
        conn.close()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def save_applications(
    records: list[DataRecord],
    owner_id: str,
    db_path: Optional[Path] = None,
    batch_size: int = BATCH_SIZE,
) -> int:
    """Store validated records for one owner. Returns the number written.

    Creation and update timestamps are assigned here, not taken from the
    records. Each batch is committed on its own.
    """
    if not records:
        return 0

    conn = get_connection(db_path)
    written = 0
    try:
        for start in range(0, len(records), batch_size):
            batch = records[start:start + batch_size]
            timestamp = _now()
            conn.executemany(
                """
                INSERT OR REPLACE INTO applications
                (owner_id, id, company, role, status, date_applied,
                 visa_sponsorship, notes, resume_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        owner_id,
                        record.id,
                        record.company,
                        record.role,
                        record.status.value,
                        record.date_applied,
                        int(record.visa_sponsorship),
                        record.notes,
                        record.resume_url,
                        timestamp,
                        timestamp,
                    )
                    for record in batch
                ],
            )
            conn.commit()
            written += len(batch)
            logger.debug(f"Wrote batch of {len(batch)} applications for {owner_id}")
    finally:
        conn.close()

    logger.info(f"Saved {written} applications for {owner_id}")
    return written


def list_applications(owner_id: str, db_path: Optional[Path] = None) -> list[DataRecord]:
    """Get all stored applications for an owner, newest first."""
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            """
            SELECT id, company, role, status, date_applied, visa_sponsorship, notes, resume_url
            FROM applications
            WHERE owner_id = ?
            ORDER BY date_applied DESC, created_at DESC
            """,
            (owner_id,),
        )
        return [
            DataRecord(
                id=row["id"],
                company=row["company"],
                role=row["role"],
                status=row["status"],
                date_applied=row["date_applied"],
                visa_sponsorship=bool(row["visa_sponsorship"]),
                notes=row["notes"],
                resume_url=row["resume_url"],
            )
            for row in cursor.fetchall()
        ]
    finally:
        conn.close()


def count_applications(owner_id: str, db_path: Optional[Path] = None) -> int:
    """Get the number of stored applications for an owner."""
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            "SELECT COUNT(*) FROM applications WHERE owner_id = ?", (owner_id,)
        )
        return cursor.fetchone()[0]
    finally:
        conn.close()
