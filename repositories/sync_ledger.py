# -*- coding: utf-8 -*-
"""
Sync status ledger.

The ledger is not a table of its own: its state lives in the
sync_status / sync_error / sync_attempts / last_sync_at columns of each
exported table. This class owns every write to those columns.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from models.sync_status import SyncStatus
from repositories.database import Database
from utils.datetime_utils import utc_now_isoformat
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_FAILURE_MESSAGE = "Échec de l'export (aucun détail fourni)"


class SyncLedger:
    """Status transitions and pending-record selection for one table."""

    def __init__(self, db: Database, table: str):
        self.db = db
        self.table = table

    @staticmethod
    def _placeholders(ids: List[int]) -> str:
        return ", ".join("?" for _ in ids)

    def mark_synced(self, ids: Iterable[int]) -> int:
        """PENDING/FAILED -> SYNCED for every id, error cleared, in one UPDATE."""
        ids = list(ids)
        if not ids:
            return 0
        query = f"""
            UPDATE {self.table}
            SET sync_status = ?, sync_error = NULL, last_sync_at = ?
            WHERE id IN ({self._placeholders(ids)})
        """
        count = self.db.execute_write(
            query, (SyncStatus.SYNCED.value, utc_now_isoformat(), *ids)
        )
        logger.debug(f"{self.table}: {count} row(s) marked synced")
        return count

    def mark_failed(self, ids: Iterable[int], error_message: Optional[str]) -> int:
        """
        -> FAILED for every id, storing the error and bumping attempts.

        No retry is scheduled; failed rows stay selectable.
        """
        ids = list(ids)
        if not ids:
            return 0
        message = (error_message or "").strip() or DEFAULT_FAILURE_MESSAGE
        query = f"""
            UPDATE {self.table}
            SET sync_status = ?,
                sync_error = ?,
                sync_attempts = COALESCE(sync_attempts, 0) + 1,
                last_sync_at = ?
            WHERE id IN ({self._placeholders(ids)})
        """
        count = self.db.execute_write(
            query, (SyncStatus.FAILED.value, message, utc_now_isoformat(), *ids)
        )
        logger.warning(f"{self.table}: {count} row(s) marked failed: {message}")
        return count

    @staticmethod
    def _settled_values() -> List[int]:
        return [status.value for status in SyncStatus if not status.is_exportable]

    def select_pending(self, limit: int, after: Optional[Tuple[str, int]] = None) -> List:
        """
        Rows not yet synced, oldest first, at most `limit` of them.

        Args:
            limit: Maximum number of rows; zero or less returns nothing
            after: (created_at, id) of the last row already handed out;
                only rows ordered strictly after it are returned
        """
        if limit is None or limit <= 0:
            return []
        settled = self._settled_values()
        query = f"SELECT * FROM {self.table} WHERE sync_status NOT IN ({self._placeholders(settled)})"
        params = list(settled)
        if after is not None:
            created_at, last_id = after
            query += " AND (COALESCE(created_at, '') > ? OR (COALESCE(created_at, '') = ? AND id > ?))"
            params.extend([created_at or "", created_at or "", last_id])
        query += " ORDER BY COALESCE(created_at, '') ASC, id ASC LIMIT ?"
        params.append(limit)
        return self.db.fetch_all(query, tuple(params))

    def select_synced_ids(self) -> List[int]:
        """Ids still flagged SYNCED, i.e. whose post-export cleanup never completed."""
        rows = self.db.fetch_all(
            f"SELECT id FROM {self.table} WHERE sync_status = ? ORDER BY id",
            (SyncStatus.SYNCED.value,)
        )
        return [row["id"] for row in rows]

    def count_pending(self) -> int:
        settled = self._settled_values()
        return self.db.scalar(
            f"SELECT COUNT(*) FROM {self.table} WHERE sync_status NOT IN ({self._placeholders(settled)})",
            tuple(settled)
        ) or 0

    def count_by_status(self) -> Dict[SyncStatus, int]:
        counts = {status: 0 for status in SyncStatus}
        rows = self.db.fetch_all(
            f"SELECT sync_status, COUNT(*) AS count FROM {self.table} GROUP BY sync_status"
        )
        for row in rows:
            counts[SyncStatus.from_value(row["sync_status"])] += row["count"]
        return counts

    def reset_failed(self) -> int:
        """Put FAILED rows back to PENDING. Attempts are kept."""
        count = self.db.execute_write(
            f"UPDATE {self.table} SET sync_status = ? WHERE sync_status = ?",
            (SyncStatus.PENDING.value, SyncStatus.FAILED.value)
        )
        if count:
            logger.info(f"{self.table}: {count} failed row(s) reset to pending")
        return count

    def last_errors(self, limit: int = 10) -> List:
        """Most recent failure messages, for status screens."""
        return self.db.fetch_all(
            f"""
            SELECT id, sync_error, sync_attempts, last_sync_at FROM {self.table}
            WHERE sync_status = ?
            ORDER BY last_sync_at DESC LIMIT ?
            """,
            (SyncStatus.FAILED.value, limit)
        )
