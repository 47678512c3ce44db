# -*- coding: utf-8 -*-
"""
Key/value application settings stored in the local database.
"""

from typing import Optional

from .database import Database
from utils.datetime_utils import utc_now_isoformat


class SettingsRepository:
    """Repository for the app_settings table."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = self.db.fetch_one("SELECT value FROM app_settings WHERE key = ?", (key,))
        if row is None or row["value"] is None:
            return default
        return row["value"]

    def set(self, key: str, value: Optional[str]) -> None:
        self.db.execute_write(
            """
            INSERT INTO app_settings (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value, utc_now_isoformat())
        )

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        placeholders = ", ".join("?" for _ in keys)
        return self.db.execute_write(
            f"DELETE FROM app_settings WHERE key IN ({placeholders})", tuple(keys)
        )
