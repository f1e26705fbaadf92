"""Tests for SQLite application storage."""

import pytest

from krisis.store import count_applications, get_connection, init_db, list_applications, save_applications


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "apps.sqlite"
    init_db(path)
    return path


class TestStore:
    def test_save_and_list(self, db_path, sample_records):
        assert save_applications(sample_records, "user-1", db_path=db_path) == 3

        stored = list_applications("user-1", db_path=db_path)
        assert [r.id for r in stored] == ["a2", "a1", "a3"]
        assert stored[0] == sample_records[1]

    def test_owners_are_isolated(self, db_path, sample_records):
        save_applications(sample_records, "user-1", db_path=db_path)
        assert count_applications("user-1", db_path=db_path) == 3
        assert count_applications("user-2", db_path=db_path) == 0
        assert list_applications("user-2", db_path=db_path) == []

    def test_small_batches(self, db_path, sample_records):
        assert save_applications(sample_records, "user-1", db_path=db_path, batch_size=2) == 3
        assert count_applications("user-1", db_path=db_path) == 3

    def test_timestamps_assigned(self, db_path, sample_records):
        save_applications(sample_records[:1], "user-1", db_path=db_path)
        conn = get_connection(db_path)
        try:
            row = conn.execute("SELECT created_at, updated_at FROM applications").fetchone()
        finally:
            conn.close()
        assert row["created_at"]
        assert row["created_at"] == row["updated_at"]

    def test_empty_save(self, db_path):
        assert save_applications([], "user-1", db_path=db_path) == 0
