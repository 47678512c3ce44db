# -*- coding: utf-8 -*-
"""
Parcel repository: parcels with their buildings and single owner.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from models.parcel import Building, Parcel, ParcelOwner
from models.sync_status import SyncStatus
from .database import Database
from utils.logger import get_logger

logger = get_logger(__name__)

TABLE = "parcels"


def _without_id(values: dict) -> dict:
    values = dict(values)
    values.pop("id", None)
    return values


class ParcelRepository:
    """Repository for Parcel CRUD operations, dependents included."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, parcel: Parcel) -> Parcel:
        """Insert a parcel, its buildings and its owner in one transaction."""
        parcel.sync_status = SyncStatus.PENDING
        parcel.sync_error = None
        parcel.sync_attempts = 0
        parcel.last_sync_at = None
        with self.db.transaction():
            parcel.id = self.db.insert(TABLE, _without_id(parcel.to_row()))
            for building in parcel.buildings:
                building.parcel_id = parcel.id
                building.id = self.db.insert("buildings", _without_id(building.to_row()))
            if parcel.owner is not None:
                parcel.owner.parcel_id = parcel.id
                parcel.owner.id = self.db.insert("parcel_owners", _without_id(parcel.owner.to_row()))
        logger.debug(f"Created parcel {parcel.id} with {len(parcel.buildings)} building(s)")
        return parcel

    def add_building(self, parcel_id: int, building: Building) -> Building:
        building.parcel_id = parcel_id
        building.id = self.db.insert("buildings", _without_id(building.to_row()))
        return building

    def set_owner(self, parcel_id: int, owner: ParcelOwner) -> ParcelOwner:
        """Replace the parcel's owner (a parcel has at most one)."""
        owner.parcel_id = parcel_id
        with self.db.transaction():
            self.db.execute_write("DELETE FROM parcel_owners WHERE parcel_id = ?", (parcel_id,))
            owner.id = self.db.insert("parcel_owners", _without_id(owner.to_row()))
        return owner

    def get_by_id(self, parcel_id: int, with_details: bool = True) -> Optional[Parcel]:
        """Get a parcel, optionally with its buildings and owner loaded."""
        row = self.db.fetch_one(f"SELECT * FROM {TABLE} WHERE id = ?", (parcel_id,))
        if not row:
            return None
        parcel = Parcel.from_row(row)
        if with_details:
            self.load_details([parcel])
        return parcel

    def load_details(self, parcels: List[Parcel]) -> List[Parcel]:
        """Attach buildings and owners to already-loaded parcels."""
        by_id = {p.id: p for p in parcels}
        if not by_id:
            return parcels
        placeholders = ", ".join("?" for _ in by_id)
        ids = tuple(by_id)

        for parcel in parcels:
            parcel.buildings = []
            parcel.owner = None

        building_rows = self.db.fetch_all(
            f"SELECT * FROM buildings WHERE parcel_id IN ({placeholders}) ORDER BY id", ids
        )
        for row in building_rows:
            by_id[row["parcel_id"]].buildings.append(Building.from_row(row))

        owner_rows = self.db.fetch_all(
            f"SELECT * FROM parcel_owners WHERE parcel_id IN ({placeholders})", ids
        )
        for row in owner_rows:
            by_id[row["parcel_id"]].owner = ParcelOwner.from_row(row)
        return parcels

    def get_all(self, limit: int = 100, offset: int = 0) -> List[Parcel]:
        query = f"SELECT * FROM {TABLE} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        rows = self.db.fetch_all(query, (limit, offset))
        return [Parcel.from_row(row) for row in rows]

    def update(self, parcel: Parcel) -> Parcel:
        """Update the parcel row itself; ledger columns are left alone."""
        parcel.updated_at = datetime.now()
        values = parcel.to_row()
        for column in ("id", "sync_status", "sync_error", "sync_attempts", "last_sync_at"):
            values.pop(column)
        assignments = ", ".join(f"{column} = ?" for column in values)
        self.db.execute_write(
            f"UPDATE {TABLE} SET {assignments} WHERE id = ?",
            (*values.values(), parcel.id)
        )
        return parcel

    def delete(self, parcel_id: int) -> bool:
        return self.delete_exported([parcel_id]) > 0

    def delete_exported(self, ids: Iterable[int]) -> int:
        """
        Delete parcels with their buildings and owner in one transaction.

        Dependents are removed explicitly rather than through ON DELETE
        CASCADE, which older databases were created without.
        """
        ids = list(ids)
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        params = tuple(ids)
        with self.db.transaction():
            self.db.execute_write(f"DELETE FROM buildings WHERE parcel_id IN ({placeholders})", params)
            self.db.execute_write(f"DELETE FROM parcel_owners WHERE parcel_id IN ({placeholders})", params)
            count = self.db.execute_write(f"DELETE FROM {TABLE} WHERE id IN ({placeholders})", params)
        logger.info(f"Deleted {count} exported parcel(s)")
        return count

    def count(self) -> int:
        return self.db.scalar(f"SELECT COUNT(*) FROM {TABLE}") or 0
