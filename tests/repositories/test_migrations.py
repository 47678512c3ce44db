# -*- coding: utf-8 -*-
"""
Tests for schema creation and migrations on older databases.
"""
import sqlite3

from repositories.database import Database
from repositories.migrations import MigrationManager


def _columns(db, table):
    return {row["name"] for row in db.fetch_all(f"PRAGMA table_info({table})")}


def _create_legacy_database(path):
    """Schema from a release that had no sync ledger columns."""
    conn = sqlite3.connect(str(path))
    conn.executescript("""
        CREATE TABLE taxpayers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            taxpayer_type TEXT NOT NULL,
            last_name TEXT,
            phone1 TEXT NOT NULL,
            record_origin TEXT NOT NULL,
            created_by TEXT NOT NULL,
            created_at TEXT
        );
        CREATE TABLE parcels (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            parcel_code TEXT,
            parcel_status TEXT NOT NULL,
            created_at TEXT
        );
        INSERT INTO taxpayers (taxpayer_type, last_name, phone1, record_origin, created_by, created_at)
        VALUES ('PHYSIQUE', 'Ilunga', '+243810000000', 'BUREAU', 'SYSTEM', '2023-11-02T09:00:00');
    """)
    conn.commit()
    conn.close()


def test_fresh_database_has_ledger_columns(db):
    for table in ("taxpayers", "parcels"):
        assert {"sync_status", "sync_error", "sync_attempts", "last_sync_at"} <= _columns(db, table)


def test_fresh_database_records_all_migrations(db):
    status = db.migration_status()

    assert status["pending_count"] == 0
    assert status["current_version"] == "004"


def test_legacy_database_is_upgraded(tmp_path):
    path = tmp_path / "legacy.db"
    _create_legacy_database(path)

    db = Database(path)
    applied = db.initialize()

    assert applied == ["001", "002", "003", "004"]
    assert "sync_attempts" in _columns(db, "taxpayers")
    row = db.fetch_one("SELECT sync_status, sync_attempts FROM taxpayers")
    assert row["sync_status"] == 0
    assert row["sync_attempts"] == 0
    db.close()


def test_initialize_is_idempotent(tmp_path):
    db = Database(tmp_path / "census.db")
    db.initialize()

    assert db.initialize() == []
    assert db.scalar("SELECT COUNT(*) FROM ref_commune") == 24
    db.close()


def test_rollback_skips_migrations_without_down_sql(db):
    manager = MigrationManager(db.adapter)

    rolled_back = manager.rollback("001")

    assert rolled_back == ["003", "002"]
    indexes = {row["name"] for row in db.fetch_all("SELECT name FROM sqlite_master WHERE type = 'index'")}
    assert "idx_taxpayers_sync" not in indexes
    assert manager.status()["pending"] == ["002", "003"]
