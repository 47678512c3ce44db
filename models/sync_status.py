# -*- coding: utf-8 -*-
"""
Sync ledger state embedded in every exportable record.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SyncStatus(Enum):
    """Per-record export state, persisted as a small integer."""
    PENDING = 0
    SYNCED = 1
    FAILED = 2

    @classmethod
    def from_value(cls, value) -> "SyncStatus":
        """Parse a stored value; NULL or unknown codes count as PENDING."""
        if isinstance(value, cls):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.PENDING

    @property
    def is_exportable(self) -> bool:
        """Whether the record is still eligible for an export session."""
        if self is SyncStatus.PENDING:
            return True
        if self is SyncStatus.FAILED:
            return True
        if self is SyncStatus.SYNCED:
            return False
        raise ValueError(f"Unhandled sync status: {self!r}")

    @property
    def label(self) -> str:
        labels = {
            SyncStatus.PENDING: "En attente",
            SyncStatus.SYNCED: "Synchronisé",
            SyncStatus.FAILED: "Échec",
        }
        return labels[self]


# Persisted column names shared by every syncable table
LEDGER_COLUMNS = ("sync_status", "sync_error", "sync_attempts", "last_sync_at")


@dataclass
class SyncableRecord:
    """
    Base for records carrying the embedded sync ledger.

    Invariant: a SYNCED record never carries a sync_error.
    """

    id: Optional[int] = None

    sync_status: SyncStatus = SyncStatus.PENDING
    sync_error: Optional[str] = None
    sync_attempts: int = 0
    last_sync_at: Optional[datetime] = None

    def __post_init__(self):
        self.sync_status = SyncStatus.from_value(self.sync_status)
        if self.sync_status is SyncStatus.SYNCED:
            self.sync_error = None
        if self.sync_attempts is None or self.sync_attempts < 0:
            self.sync_attempts = 0

    def ledger_to_row(self) -> dict:
        """Ledger columns for storage."""
        return {
            "sync_status": self.sync_status.value,
            "sync_error": self.sync_error,
            "sync_attempts": self.sync_attempts,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
        }
