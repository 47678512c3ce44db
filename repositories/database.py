# -*- coding: utf-8 -*-
"""
Database handle shared by the repositories and sync services.

There is no module-level instance: the application builds one Database
at startup and passes it to whatever needs it.
"""

from pathlib import Path
from typing import Optional, List, Any
from contextlib import contextmanager

from repositories.db_adapter import SQLiteAdapter, RowProxy
from repositories.migrations import MigrationManager
from utils.logger import get_logger

logger = get_logger(__name__)


class Database:
    """
    Thin facade over the SQLite adapter.

    Repositories only talk to this class, which keeps the adapter
    swappable in tests.
    """

    def __init__(self, db_path: Optional[Path] = None, adapter: Optional[SQLiteAdapter] = None):
        """
        Initialize database.

        Args:
            db_path: Path of the SQLite file (defaults to Config.DB_PATH)
            adapter: Pre-built adapter, mainly for tests
        """
        self._adapter = adapter or SQLiteAdapter(db_path)
        self._adapter.connect()

    @property
    def db_path(self) -> Path:
        return self._adapter.db_path

    @property
    def adapter(self) -> SQLiteAdapter:
        return self._adapter

    def initialize(self) -> List[str]:
        """
        Create missing tables, seed lookup rows and apply pending migrations.

        Returns:
            Versions of the migrations applied by this call
        """
        self._adapter.initialize()
        applied = MigrationManager(self._adapter).migrate()
        if applied:
            logger.info(f"Database upgraded with migrations: {', '.join(applied)}")
        return applied

    def migration_status(self) -> dict:
        return MigrationManager(self._adapter).status()

    @contextmanager
    def transaction(self):
        """
        Transaction context manager.

        Usage:
            with db.transaction():
                db.execute(...)  # joins the transaction
        """
        with self._adapter.transaction() as conn:
            yield conn

    @contextmanager
    def cursor(self):
        """
        Context manager for a raw cursor inside a transaction.

        Usage:
            with db.cursor() as cursor:
                cursor.execute("SELECT ...")
        """
        with self._adapter.transaction() as conn:
            cursor = conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    @contextmanager
    def foreign_keys_disabled(self):
        """Wrap a transaction whose statements would transiently violate FKs."""
        with self._adapter.foreign_keys_disabled():
            yield

    def execute(self, query: str, params: tuple = ()) -> List[RowProxy]:
        """Execute a query and return any result rows."""
        return self._adapter.execute(query, params)

    def execute_write(self, query: str, params: tuple = ()) -> int:
        """Execute an UPDATE/DELETE and return the affected row count."""
        return self._adapter.execute_write(query, params)

    def execute_many(self, query: str, params_list: List[tuple]) -> int:
        return self._adapter.execute_many(query, params_list)

    def insert(self, table: str, values: dict) -> int:
        """Insert a row and return its id."""
        return self._adapter.insert(table, values)

    def fetch_one(self, query: str, params: tuple = ()) -> Optional[RowProxy]:
        """
        Execute query and fetch single row.

        Returns:
            RowProxy or None
        """
        return self._adapter.fetch_one(query, params)

    def fetch_all(self, query: str, params: tuple = ()) -> List[RowProxy]:
        """
        Execute query and fetch all rows.

        Returns:
            List of RowProxy objects
        """
        return self._adapter.fetch_all(query, params)

    def scalar(self, query: str, params: tuple = ()) -> Any:
        """First column of the first row, or None."""
        row = self._adapter.fetch_one(query, params)
        return row[0] if row else None

    def close(self) -> None:
        """Close database connection."""
        self._adapter.close()
