# -*- coding: utf-8 -*-
"""
Reference (lookup) table repository.
"""

from typing import Dict, Iterable, List, Optional

from models.reference import REFERENCE_TABLES, ReferenceRow
from .database import Database
from utils.logger import get_logger

logger = get_logger(__name__)


class ReferenceRepository:
    """Read access and wholesale replacement of the lookup tables."""

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _check_table(table: str):
        if table not in REFERENCE_TABLES:
            raise ValueError(f"Unknown reference table: {table}")

    def get_rows(self, table: str) -> List[ReferenceRow]:
        self._check_table(table)
        rows = self.db.fetch_all(f"SELECT id, label FROM {table} ORDER BY label")
        return [ReferenceRow(row["id"], row["label"]) for row in rows]

    def get_label(self, table: str, row_id: int) -> Optional[str]:
        self._check_table(table)
        row = self.db.fetch_one(f"SELECT label FROM {table} WHERE id = ?", (row_id,))
        return row["label"] if row else None

    def counts(self) -> Dict[str, int]:
        return {
            table: self.db.scalar(f"SELECT COUNT(*) FROM {table}") or 0
            for table in REFERENCE_TABLES
        }

    def replace_all(self, rows_by_table: Dict[str, Iterable[ReferenceRow]]) -> Dict[str, int]:
        """
        Replace the content of every given table with the given rows.

        Ids are inserted as received. Records pointing at those ids must
        keep resolving, so FK enforcement is suspended while the tables
        are momentarily empty, and the whole swap is a single transaction:
        on any error no table is left partially replaced.

        Returns:
            Row count inserted per table
        """
        for table in rows_by_table:
            self._check_table(table)

        counts = {}
        with self.db.foreign_keys_disabled():
            with self.db.transaction():
                for table in rows_by_table:
                    self.db.execute_write(f"DELETE FROM {table}")
                for table, rows in rows_by_table.items():
                    params = [(row.id, row.label) for row in rows]
                    if params:
                        self.db.execute_many(
                            f"INSERT INTO {table} (id, label) VALUES (?, ?)", params
                        )
                    counts[table] = len(params)
        logger.info(f"Reference tables replaced: {counts}")
        return counts
