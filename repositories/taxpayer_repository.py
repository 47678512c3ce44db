# -*- coding: utf-8 -*-
"""
Taxpayer repository for database operations.
"""

from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from models.enums import TaxpayerType
from models.sync_status import SyncStatus
from models.taxpayer import Taxpayer, parse_photo_paths
from services.attachment_cleanup import AttachmentResult, delete_attachments
from services.exceptions import ValidationException
from .database import Database
from utils.logger import get_logger

logger = get_logger(__name__)

TABLE = "taxpayers"


class TaxpayerRepository:
    """Repository for Taxpayer CRUD operations."""

    def __init__(self, db: Database, photos_dir: Optional[Path] = None):
        self.db = db
        self.photos_dir = photos_dir

    def _validate(self, taxpayer: Taxpayer):
        if not (taxpayer.phone1 or "").strip():
            raise ValidationException("Le téléphone principal est obligatoire", field="phone1")
        if taxpayer.taxpayer_type is TaxpayerType.MORALE:
            if not taxpayer.company_name:
                raise ValidationException("La raison sociale est obligatoire", field="company_name")
        elif not taxpayer.last_name:
            raise ValidationException("Le nom est obligatoire", field="last_name")

    def create(self, taxpayer: Taxpayer) -> Taxpayer:
        """Insert a new taxpayer; new records always start PENDING."""
        self._validate(taxpayer)
        taxpayer.sync_status = SyncStatus.PENDING
        taxpayer.sync_error = None
        taxpayer.sync_attempts = 0
        taxpayer.last_sync_at = None
        values = taxpayer.to_row()
        values.pop("id")
        taxpayer.id = self.db.insert(TABLE, values)
        logger.debug(f"Created taxpayer: {taxpayer.id}")
        return taxpayer

    def get_by_id(self, taxpayer_id: int) -> Optional[Taxpayer]:
        """Get taxpayer by ID."""
        row = self.db.fetch_one(f"SELECT * FROM {TABLE} WHERE id = ?", (taxpayer_id,))
        if row:
            return Taxpayer.from_row(row)
        return None

    def get_by_ids(self, ids: Iterable[int]) -> List[Taxpayer]:
        ids = list(ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self.db.fetch_all(
            f"SELECT * FROM {TABLE} WHERE id IN ({placeholders}) ORDER BY created_at, id",
            tuple(ids)
        )
        return [Taxpayer.from_row(row) for row in rows]

    def get_all(self, limit: int = 100, offset: int = 0) -> List[Taxpayer]:
        """Get all taxpayers with pagination, newest first."""
        query = f"SELECT * FROM {TABLE} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        rows = self.db.fetch_all(query, (limit, offset))
        return [Taxpayer.from_row(row) for row in rows]

    def search(self, search_text: str = None, nif: str = None,
               commune_id: int = None, sync_status: SyncStatus = None,
               limit: int = 50) -> List[Taxpayer]:
        """Search taxpayers by name, NIF, commune or sync state."""
        query = f"SELECT * FROM {TABLE} WHERE 1=1"
        params = []

        if search_text:
            like = f"%{search_text}%"
            query += """ AND (last_name LIKE ? OR middle_name LIKE ? OR first_name LIKE ?
                              OR company_name LIKE ? OR phone1 LIKE ?)"""
            params.extend([like] * 5)

        if nif:
            query += " AND nif = ?"
            params.append(nif)

        if commune_id is not None:
            query += " AND commune_id = ?"
            params.append(commune_id)

        if sync_status is not None:
            query += " AND sync_status = ?"
            params.append(SyncStatus.from_value(sync_status).value)

        query += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit)

        rows = self.db.fetch_all(query, tuple(params))
        return [Taxpayer.from_row(row) for row in rows]

    def update(self, taxpayer: Taxpayer) -> Taxpayer:
        """
        Update a taxpayer's captured fields.

        Ledger columns are left alone; an edited record that already failed
        stays FAILED until the next export picks it up.
        """
        self._validate(taxpayer)
        taxpayer.updated_at = datetime.now()
        values = taxpayer.to_row()
        for column in ("id", "sync_status", "sync_error", "sync_attempts", "last_sync_at"):
            values.pop(column)
        assignments = ", ".join(f"{column} = ?" for column in values)
        self.db.execute_write(
            f"UPDATE {TABLE} SET {assignments} WHERE id = ?",
            (*values.values(), taxpayer.id)
        )
        logger.debug(f"Updated taxpayer: {taxpayer.id}")
        return taxpayer

    def delete(self, taxpayer_id: int) -> List[AttachmentResult]:
        """Delete a taxpayer and its photos. Photo failures are only logged."""
        taxpayer = self.get_by_id(taxpayer_id)
        if taxpayer is None:
            return []
        self.db.execute_write(f"DELETE FROM {TABLE} WHERE id = ?", (taxpayer_id,))
        logger.info(f"Deleted taxpayer: {taxpayer_id}")
        return delete_attachments(taxpayer.id_photo_paths, self.photos_dir)

    def delete_exported(self, ids: Iterable[int]) -> List[str]:
        """
        Delete accepted rows in one transaction.

        Returns:
            Photo paths the deleted rows referenced, for the caller to purge
        """
        ids = list(ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        with self.db.transaction():
            rows = self.db.fetch_all(
                f"SELECT id_photo_paths FROM {TABLE} WHERE id IN ({placeholders})",
                tuple(ids)
            )
            self.db.execute_write(
                f"DELETE FROM {TABLE} WHERE id IN ({placeholders})", tuple(ids)
            )
        paths = []
        for row in rows:
            paths.extend(parse_photo_paths(row["id_photo_paths"]))
        logger.info(f"Deleted {len(ids)} exported taxpayer(s)")
        return paths

    def count(self) -> int:
        return self.db.scalar(f"SELECT COUNT(*) FROM {TABLE}") or 0
