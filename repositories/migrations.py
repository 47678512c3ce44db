# -*- coding: utf-8 -*-
"""
Database migrations system for the on-device SQLite store.
Tracks and applies schema changes incrementally.

Devices in the field may hold databases created by any earlier release,
so every step must be safe to run against a schema that already has it.
"""

from typing import Callable, List, Optional
from dataclasses import dataclass
import hashlib

from utils.datetime_utils import utc_now_isoformat
from utils.logger import get_logger

logger = get_logger(__name__)

SYNCED_TABLES = ("taxpayers", "parcels")

LEDGER_COLUMN_DDL = {
    "sync_status": "INTEGER NOT NULL DEFAULT 0",
    "sync_error": "TEXT",
    "sync_attempts": "INTEGER NOT NULL DEFAULT 0",
    "last_sync_at": "TEXT",
}


@dataclass
class Migration:
    """Represents a database migration."""
    version: str
    name: str
    up_sql: str = ""
    down_sql: str = ""
    checksum: str = ""
    # Python step for changes SQLite cannot express idempotently (ADD COLUMN)
    apply: Optional[Callable] = None

    def __post_init__(self):
        if not self.checksum:
            source = self.up_sql or self.name
            self.checksum = hashlib.md5(source.encode()).hexdigest()


def _split_statements(sql: str) -> List[str]:
    return [s.strip() for s in sql.split(";") if s.strip()]


def _table_columns(cursor, table: str) -> List[str]:
    cursor.execute(f"PRAGMA table_info({table})")
    return [row["name"] for row in cursor.fetchall()]


def _add_ledger_columns(cursor):
    """Add the sync ledger columns to tables created before they existed."""
    for table in SYNCED_TABLES:
        existing = set(_table_columns(cursor, table))
        for column, ddl in LEDGER_COLUMN_DDL.items():
            if column not in existing:
                cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
                logger.info(f"Added column {table}.{column}")


class MigrationManager:
    """
    Manages database migrations.

    Usage:
        manager = MigrationManager(adapter)
        manager.migrate()  # Apply all pending migrations
    """

    def __init__(self, db):
        self.db = db
        self._migrations: List[Migration] = []
        self._register_migrations()

    def _register_migrations(self):
        """Register all migrations in order."""

        # V001: sync ledger columns on the exported tables
        self._migrations.append(Migration(
            version="001",
            name="add_sync_ledger_columns",
            apply=_add_ledger_columns,
        ))

        # V002: pending-record scans select by status in creation order
        self._migrations.append(Migration(
            version="002",
            name="add_sync_indexes",
            up_sql="""
                CREATE INDEX IF NOT EXISTS idx_taxpayers_sync
                ON taxpayers (sync_status, created_at, id);

                CREATE INDEX IF NOT EXISTS idx_parcels_sync
                ON parcels (sync_status, created_at, id);
            """,
            down_sql="""
                DROP INDEX IF EXISTS idx_taxpayers_sync;
                DROP INDEX IF EXISTS idx_parcels_sync;
            """
        ))

        # V003: dependents are looked up by parcel
        self._migrations.append(Migration(
            version="003",
            name="add_parcel_dependent_indexes",
            up_sql="""
                CREATE INDEX IF NOT EXISTS idx_buildings_parcel
                ON buildings (parcel_id);
            """,
            down_sql="DROP INDEX IF EXISTS idx_buildings_parcel;"
        ))

        # V004: rows from releases that stored text statuses
        self._migrations.append(Migration(
            version="004",
            name="normalize_sync_status_values",
            up_sql="""
                UPDATE taxpayers SET sync_status = 0
                WHERE sync_status IS NULL OR sync_status NOT IN (0, 1, 2);

                UPDATE parcels SET sync_status = 0
                WHERE sync_status IS NULL OR sync_status NOT IN (0, 1, 2);
            """,
        ))

    @property
    def migrations(self) -> List[Migration]:
        return list(self._migrations)

    def _ensure_migrations_table(self, cursor):
        """Create migrations tracking table if it doesn't exist."""
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                checksum TEXT NOT NULL,
                applied_at TEXT
            )
        """)

    def get_applied_migrations(self) -> List[str]:
        """Get list of applied migration versions."""
        with self.db.transaction() as conn:
            cursor = conn.cursor()
            self._ensure_migrations_table(cursor)
            cursor.execute("SELECT version FROM schema_migrations ORDER BY version")
            return [row['version'] for row in cursor.fetchall()]

    def get_pending_migrations(self) -> List[Migration]:
        """Get list of migrations not yet applied."""
        applied = set(self.get_applied_migrations())
        return [m for m in self._migrations if m.version not in applied]

    def migrate(self, target_version: Optional[str] = None) -> List[str]:
        """
        Apply pending migrations.

        Args:
            target_version: Apply up to this version (None = all)

        Returns:
            List of applied migration versions
        """
        applied = []
        pending = self.get_pending_migrations()

        if not pending:
            logger.info("No pending migrations")
            return applied

        for migration in pending:
            if target_version and migration.version > target_version:
                break

            try:
                self._apply_migration(migration)
                applied.append(migration.version)
                logger.info(f"Applied migration {migration.version}: {migration.name}")
            except Exception as e:
                logger.error(f"Failed to apply migration {migration.version}: {e}")
                raise

        return applied

    def _apply_migration(self, migration: Migration):
        """Apply a single migration."""
        with self.db.transaction() as conn:
            cursor = conn.cursor()

            if migration.apply is not None:
                migration.apply(cursor)
            for statement in _split_statements(migration.up_sql):
                cursor.execute(statement)

            # Record the migration
            cursor.execute("""
                INSERT INTO schema_migrations (version, name, checksum, applied_at)
                VALUES (?, ?, ?, ?)
            """, (migration.version, migration.name, migration.checksum, utc_now_isoformat()))

    def rollback(self, target_version: str) -> List[str]:
        """
        Rollback migrations to target version.

        Args:
            target_version: Rollback to this version (exclusive)

        Returns:
            List of rolled back migration versions
        """
        rolled_back = []
        applied = self.get_applied_migrations()

        # Get migrations to rollback (in reverse order)
        to_rollback = [
            m for m in reversed(self._migrations)
            if m.version in applied and m.version > target_version
        ]

        for migration in to_rollback:
            if not migration.down_sql:
                logger.warning(f"Migration {migration.version} has no rollback SQL")
                continue

            try:
                self._rollback_migration(migration)
                rolled_back.append(migration.version)
                logger.info(f"Rolled back migration {migration.version}: {migration.name}")
            except Exception as e:
                logger.error(f"Failed to rollback migration {migration.version}: {e}")
                raise

        return rolled_back

    def _rollback_migration(self, migration: Migration):
        """Rollback a single migration."""
        with self.db.transaction() as conn:
            cursor = conn.cursor()

            for statement in _split_statements(migration.down_sql):
                cursor.execute(statement)

            cursor.execute(
                "DELETE FROM schema_migrations WHERE version = ?",
                (migration.version,)
            )

    def status(self) -> dict:
        """Get migration status."""
        applied = self.get_applied_migrations()
        pending = self.get_pending_migrations()

        return {
            "current_version": applied[-1] if applied else None,
            "applied_count": len(applied),
            "pending_count": len(pending),
            "applied": applied,
            "pending": [m.version for m in pending]
        }
