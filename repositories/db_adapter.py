# -*- coding: utf-8 -*-
"""
Database Adapter - storage abstraction for the on-device record store.

Records are authored offline, so the store is a local SQLite file.
This module is the ONLY place that should import sqlite3.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from utils.logger import get_logger

logger = get_logger(__name__)


class RowProxy:
    """
    A dict-like row proxy that supports both dict access and attribute access.
    """

    def __init__(self, data: Dict[str, Any], columns: Optional[List[str]] = None):
        self._data = data
        self._columns = columns or list(data.keys())

    def __getitem__(self, key):
        if isinstance(key, int):
            return self._data[self._columns[key]]
        return self._data[key]

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    def __contains__(self, key):
        return key in self._data

    def __iter__(self):
        return iter(self._data.values())

    def __len__(self):
        return len(self._data)

    def get(self, key, default=None):
        return self._data.get(key, default)

    def keys(self):
        return self._data.keys()

    def values(self):
        return self._data.values()

    def items(self):
        return self._data.items()

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __repr__(self):
        return f"RowProxy({self._data})"


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.
    Defines the interface repositories rely on.
    """

    @abstractmethod
    def connect(self) -> bool:
        """Establish database connection."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    def execute(self, query: str, params: Optional[Tuple] = None) -> List[RowProxy]:
        """Execute a statement in its own transaction and return any rows."""
        pass

    @abstractmethod
    def execute_write(self, query: str, params: Optional[Tuple] = None) -> int:
        """Execute a write statement and return the affected row count."""
        pass

    @abstractmethod
    def insert(self, table: str, values: Dict[str, Any]) -> int:
        """Insert one row and return its generated id."""
        pass

    @abstractmethod
    def fetch_one(self, query: str, params: Optional[Tuple] = None) -> Optional[RowProxy]:
        """Execute query and fetch single row."""
        pass

    @abstractmethod
    def fetch_all(self, query: str, params: Optional[Tuple] = None) -> List[RowProxy]:
        """Execute query and fetch all rows."""
        pass

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Transaction context manager with auto-commit/rollback."""
        pass

    @abstractmethod
    @contextmanager
    def foreign_keys_disabled(self) -> Iterator[None]:
        """Suspend foreign key enforcement for the duration of the block."""
        pass

    @abstractmethod
    def initialize(self) -> None:
        """Initialize database schema."""
        pass


class SQLiteAdapter(DatabaseAdapter):
    """SQLite database adapter."""

    def __init__(self, db_path: Optional[Path] = None):
        if db_path is None:
            from app.config import Config
            db_path = Config.DB_PATH

        self._db_path = Path(db_path)
        self._connection: Optional[sqlite3.Connection] = None
        # Export workers run on a QThread; every statement and every
        # transaction holds this lock so they never interleave on the connection.
        self._lock = threading.RLock()
        self._in_explicit_transaction = False

        # Ensure directory exists
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def db_path(self) -> Path:
        """Get database file path."""
        return self._db_path

    def connect(self) -> bool:
        """Establish SQLite connection."""
        try:
            if self._connection is None:
                self._connection = sqlite3.connect(
                    str(self._db_path),
                    check_same_thread=False,
                )
                self._connection.row_factory = self._dict_factory
                self._connection.execute("PRAGMA foreign_keys = ON")
            return True
        except sqlite3.Error as e:
            logger.error(f"SQLite connection error: {e}")
            return False

    def _dict_factory(self, cursor, row):
        """Convert row to dictionary."""
        columns = [col[0] for col in cursor.description]
        return {col: row[idx] for idx, col in enumerate(columns)}

    def close(self) -> None:
        """Close SQLite connection."""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
                logger.info("SQLite connection closed")

    def is_connected(self) -> bool:
        return self._connection is not None

    def _get_connection(self) -> sqlite3.Connection:
        """Get connection, connecting if needed."""
        if not self._connection and not self.connect():
            raise sqlite3.OperationalError(f"Unable to open database at {self._db_path}")
        return self._connection

    def _rows(self, cursor) -> List[RowProxy]:
        if cursor.description:
            columns = [col[0] for col in cursor.description]
            return [RowProxy(row, columns) for row in cursor.fetchall()]
        return []

    def execute(self, query: str, params: Optional[Tuple] = None) -> List[RowProxy]:
        """Execute query and return results."""
        with self._lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                cursor.execute(query, params or ())
                rows = self._rows(cursor)
                if not self._in_explicit_transaction:
                    conn.commit()
                return rows
            except sqlite3.Error as e:
                if not self._in_explicit_transaction:
                    conn.rollback()
                logger.error(f"SQLite execute error: {e}\nQuery: {query}")
                raise
            finally:
                cursor.close()

    def execute_write(self, query: str, params: Optional[Tuple] = None) -> int:
        """Execute a write and return cursor.rowcount."""
        with self._lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                cursor.execute(query, params or ())
                count = cursor.rowcount
                if not self._in_explicit_transaction:
                    conn.commit()
                return count
            except sqlite3.Error as e:
                if not self._in_explicit_transaction:
                    conn.rollback()
                logger.error(f"SQLite write error: {e}\nQuery: {query}")
                raise
            finally:
                cursor.close()

    def execute_many(self, query: str, params_list: List[Tuple]) -> int:
        """Execute query with multiple parameter sets."""
        with self._lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                cursor.executemany(query, params_list)
                count = cursor.rowcount
                if not self._in_explicit_transaction:
                    conn.commit()
                return count
            except sqlite3.Error as e:
                if not self._in_explicit_transaction:
                    conn.rollback()
                logger.error(f"SQLite executemany error: {e}")
                raise
            finally:
                cursor.close()

    def insert(self, table: str, values: Dict[str, Any]) -> int:
        """Insert a row from a column->value dict; returns lastrowid."""
        columns = ", ".join(values.keys())
        placeholders = ", ".join("?" for _ in values)
        query = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        with self._lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                cursor.execute(query, tuple(values.values()))
                row_id = cursor.lastrowid
                if not self._in_explicit_transaction:
                    conn.commit()
                return row_id
            except sqlite3.Error as e:
                if not self._in_explicit_transaction:
                    conn.rollback()
                logger.error(f"SQLite insert error on {table}: {e}")
                raise
            finally:
                cursor.close()

    def fetch_one(self, query: str, params: Optional[Tuple] = None) -> Optional[RowProxy]:
        """Fetch single row."""
        with self._lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                cursor.execute(query, params or ())
                row = cursor.fetchone()
                if row and cursor.description:
                    columns = [col[0] for col in cursor.description]
                    return RowProxy(row, columns)
                return None
            except sqlite3.Error as e:
                logger.error(f"SQLite fetch_one error: {e}\nQuery: {query}")
                raise
            finally:
                cursor.close()

    def fetch_all(self, query: str, params: Optional[Tuple] = None) -> List[RowProxy]:
        """Fetch all rows."""
        with self._lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                cursor.execute(query, params or ())
                return self._rows(cursor)
            except sqlite3.Error as e:
                logger.error(f"SQLite fetch_all error: {e}\nQuery: {query}")
                raise
            finally:
                cursor.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Transaction context manager.

        Statements issued through this adapter inside the block join the
        transaction instead of committing individually. Nested blocks join
        the outer transaction.
        """
        with self._lock:
            conn = self._get_connection()
            if self._in_explicit_transaction:
                yield conn
                return

            if conn.in_transaction:
                conn.commit()
            conn.execute("BEGIN")
            self._in_explicit_transaction = True
            try:
                yield conn
                conn.commit()
            except BaseException as e:
                conn.rollback()
                logger.error(f"SQLite transaction rolled back: {e}")
                raise
            finally:
                self._in_explicit_transaction = False

    @contextmanager
    def foreign_keys_disabled(self) -> Iterator[None]:
        """
        Turn off FK enforcement, restoring it on exit even after errors.

        SQLite ignores this pragma inside a transaction, so it must wrap
        transaction(), never the other way round.
        """
        with self._lock:
            conn = self._get_connection()
            if self._in_explicit_transaction:
                raise sqlite3.OperationalError("Cannot toggle foreign keys inside a transaction")
            if conn.in_transaction:
                conn.commit()
            conn.execute("PRAGMA foreign_keys = OFF")
            try:
                yield
            finally:
                conn.execute("PRAGMA foreign_keys = ON")

    def foreign_keys_enabled(self) -> bool:
        row = self.fetch_one("PRAGMA foreign_keys")
        return bool(row and row["foreign_keys"])

    def initialize(self) -> None:
        """Initialize SQLite schema and seed default reference rows."""
        logger.info(f"Initializing SQLite database at: {self._db_path}")
        with self.transaction() as conn:
            cursor = conn.cursor()
            self._create_tables(cursor)
            self._seed_reference_tables(cursor)
        logger.info("SQLite database initialized successfully")

    def _create_tables(self, cursor) -> None:
        """Create all database tables."""
        for table in REFERENCE_TABLE_NAMES:
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY,
                    label TEXT NOT NULL
                )
            """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS taxpayers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                nif TEXT,
                nif_type TEXT,
                taxpayer_type TEXT NOT NULL,
                last_name TEXT,
                middle_name TEXT,
                first_name TEXT,
                company_name TEXT,
                phone1 TEXT NOT NULL,
                phone2 TEXT,
                email TEXT,
                commune_id INTEGER REFERENCES ref_commune (id),
                quartier_id INTEGER REFERENCES ref_quartier (id),
                avenue_id INTEGER REFERENCES ref_avenue (id),
                street TEXT,
                parcel_number TEXT,
                record_origin TEXT NOT NULL,
                activity_id INTEGER REFERENCES ref_activity_type (id),
                zone_id INTEGER REFERENCES ref_zone_type (id),
                status INTEGER,
                gps_latitude REAL,
                gps_longitude REAL,
                id_photo_paths TEXT,
                registered_at TEXT,
                created_by TEXT NOT NULL,
                modified_at TEXT,
                modified_by TEXT,
                legal_form TEXT,
                rccm_number TEXT,
                created_at TEXT,
                updated_at TEXT,
                sync_status INTEGER NOT NULL DEFAULT 0,
                sync_error TEXT,
                sync_attempts INTEGER NOT NULL DEFAULT 0,
                last_sync_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS parcels (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                parcel_code TEXT,
                cadastral_reference TEXT,
                commune_name TEXT,
                quartier_name TEXT,
                street_avenue TEXT,
                address_number TEXT,
                commune_id INTEGER REFERENCES ref_commune (id),
                quartier_id INTEGER REFERENCES ref_quartier (id),
                avenue_id INTEGER REFERENCES ref_avenue (id),
                street TEXT,
                parcel_number TEXT,
                area_m2 REAL,
                gps_lat REAL,
                gps_lon REAL,
                parcel_status TEXT NOT NULL,
                source TEXT,
                created_at TEXT,
                updated_at TEXT,
                sync_status INTEGER NOT NULL DEFAULT 0,
                sync_error TEXT,
                sync_attempts INTEGER NOT NULL DEFAULT 0,
                last_sync_at TEXT
            )
        """)

        # One owner per parcel
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS parcel_owners (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                parcel_id INTEGER UNIQUE REFERENCES parcels (id) ON DELETE CASCADE,
                owner_type TEXT NOT NULL,
                name TEXT,
                nif TEXT,
                contact TEXT,
                postal_address TEXT,
                created_at TEXT,
                updated_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS buildings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                parcel_id INTEGER REFERENCES parcels (id) ON DELETE CASCADE,
                building_type TEXT NOT NULL,
                floor_count INTEGER,
                construction_year INTEGER,
                built_area_m2 REAL,
                main_use TEXT NOT NULL,
                building_status TEXT NOT NULL,
                created_at TEXT,
                updated_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS app_settings (
                key TEXT PRIMARY KEY,
                value TEXT,
                updated_at TEXT
            )
        """)

    def _seed_reference_tables(self, cursor) -> None:
        """Seed lookup tables on first run so forms work before the first resync."""
        for table, labels in DEFAULT_REFERENCE_ROWS.items():
            cursor.execute(f"SELECT COUNT(*) AS count FROM {table}")
            if cursor.fetchone()["count"]:
                continue
            cursor.executemany(
                f"INSERT INTO {table} (id, label) VALUES (?, ?)",
                [(index, label) for index, label in enumerate(labels, start=1)]
            )
            logger.debug(f"Seeded {len(labels)} rows into {table}")


REFERENCE_TABLE_NAMES = (
    "ref_activity_type",
    "ref_zone_type",
    "ref_commune",
    "ref_quartier",
    "ref_avenue",
)

DEFAULT_REFERENCE_ROWS: Dict[str, List[str]] = {
    "ref_activity_type": [
        "Commerce général", "Agriculture", "Artisanat", "Services", "Transport",
        "Restauration", "Hôtellerie", "Construction", "Industrie", "Santé",
        "Éducation", "Télécommunications", "Banque et Finance", "Immobilier", "Autre",
    ],
    "ref_zone_type": [
        "Zone urbaine", "Zone périurbaine", "Zone rurale", "Zone industrielle",
        "Zone commerciale", "Zone résidentielle", "Zone mixte",
    ],
    "ref_commune": [
        "Bandalungwa", "Barumbu", "Bumbu", "Gombe", "Kalamu", "Kasa-Vubu",
        "Kimbanseke", "Kinshasa", "Kintambo", "Kisenso", "Lemba", "Limete",
        "Lingwala", "Makala", "Maluku", "Masina", "Matete", "Mont-Ngafula",
        "Ndjili", "Ngaba", "Ngaliema", "Ngiri-Ngiri", "Nsele", "Selembao",
    ],
    "ref_quartier": [
        "Centre-ville", "Matonge", "Yolo", "Righini", "Livulu", "Mbanza-Lemba",
        "Funa", "Industriel", "Résidentiel", "Commercial",
    ],
    "ref_avenue": [
        "Avenue de la Libération", "Avenue Lumumba", "Avenue Kasavubu",
        "Avenue du Commerce", "Avenue de la Paix", "Avenue des Huileries",
        "Avenue Colonel Mondjiba", "Avenue de l'Université", "Avenue Sendwe",
        "Avenue Kasa-Vubu",
    ],
}
