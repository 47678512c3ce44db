# -*- coding: utf-8 -*-
"""
Reference data resynchronization.

Replaces the local lookup tables with the backend's authoritative rows,
keeping the backend ids so captured records keep pointing at the same
entries.
"""

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.reference import REFERENCE_TABLES, ReferenceRow
from repositories.database import Database
from repositories.reference_repository import ReferenceRepository
from services.api_client import CensusApiClient
from services.auth_service import AuthService
from services.exceptions import ApiException, AuthenticationException, NetworkException
from services.sync_gate import SyncGate
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RefsSyncResult:
    success: bool
    message: str
    counts: Dict[str, int] = field(default_factory=dict)


def parse_reference_rows(value: Any) -> Optional[List[ReferenceRow]]:
    """
    Tolerant parse of one [{id, libelle}, ...] list.

    Entries without a usable integer id or with a blank label are skipped.
    Returns None when the value is not a list at all.
    """
    if not isinstance(value, list):
        return None
    rows = []
    seen = set()
    for item in value:
        if not isinstance(item, dict):
            continue
        raw_id = item.get("id")
        raw_label = item.get("libelle")
        if raw_id is None or raw_label is None or isinstance(raw_id, bool):
            continue
        try:
            row_id = int(str(raw_id).strip())
        except ValueError:
            continue
        label = str(raw_label).strip()
        if not label or row_id in seen:
            continue
        seen.add(row_id)
        rows.append(ReferenceRow(row_id, label))
    return rows


class ReferenceSyncService:
    """Fetch /reftypes/all and swap the lookup tables atomically."""

    def __init__(self, db: Database, api_client: CensusApiClient,
                 auth_service: Optional[AuthService] = None, gate: Optional[SyncGate] = None):
        self.repository = ReferenceRepository(db)
        self.api_client = api_client
        self.auth_service = auth_service
        self.gate = gate or SyncGate()

    def synchronize(self) -> RefsSyncResult:
        """
        Run one resync.

        Failures are reported in the result rather than raised; only a
        concurrent sync operation raises (SyncBusyError).
        """
        with self.gate.reference_sync():
            try:
                if self.auth_service is not None:
                    self.auth_service.authenticate()
                response = self.api_client.get_reference_data()
            except AuthenticationException as e:
                logger.error(f"Reference sync: authentication failed: {e}")
                return RefsSyncResult(False, f"Authentification échouée: {e.message}")
            except (ApiException, NetworkException) as e:
                logger.error(f"Reference sync: fetch failed: {e}")
                return RefsSyncResult(False, f"Synchronisation échouée: {e}")
            finally:
                if self.auth_service is not None:
                    self.auth_service.logout()

            if not isinstance(response, dict):
                logger.warning(f"Reference sync: unexpected response type {type(response).__name__}")
                return RefsSyncResult(False, "Format de réponse invalide pour les références.")

            rows_by_table = {}
            for table, key in REFERENCE_TABLES.items():
                rows = parse_reference_rows(response.get(key))
                if rows is None:
                    logger.warning(f"Reference sync: '{key}' missing from response, {table} kept")
                    continue
                rows_by_table[table] = rows

            try:
                counts = self.repository.replace_all(rows_by_table)
            except sqlite3.Error as e:
                logger.error(f"Reference sync: local replace rolled back: {e}")
                return RefsSyncResult(False, f"Synchronisation échouée: {e}")

        return RefsSyncResult(True, "Références synchronisées avec succès.", counts)
