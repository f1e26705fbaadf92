"""Shared fixtures for krisis tests."""

import pytest

from krisis.config import reset_config
from krisis.models import ApplicationStatus, DataRecord


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_csv():
    def _make(header: str, rows: list[str]) -> bytes:
        return ("\n".join([header, *rows]) + "\n").encode("utf-8")

    return _make


@pytest.fixture
def sample_records() -> list[DataRecord]:
    return [
        DataRecord(
            id="a1",
            company="Google",
            role="Software Engineer",
            date_applied="2024-01-15",
            status=ApplicationStatus.APPLIED,
            visa_sponsorship=True,
        ),
        DataRecord(
            id="a2",
            company="Acme, Inc.",
            role="Data Analyst",
            date_applied="2024-02-29",
            status=ApplicationStatus.FINAL_ROUND,
            visa_sponsorship=False,
            notes='Referral from "John", great fit',
        ),
        DataRecord(
            id="a3",
            company="Meta",
            role="EM",
            date_applied="2023-12-01",
            status=ApplicationStatus.REJECTED,
            visa_sponsorship=False,
            notes="Line one\nLine two",
        ),
    ]
