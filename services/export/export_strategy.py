# -*- coding: utf-8 -*-
"""
Export Strategy Pattern - one strategy per exported entity kind.

A strategy knows how to turn a chunk of pending rows into the request
payload for its backend endpoint, and how to clean up once the backend
has accepted that chunk. The ExportManager drives the rest.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.config import Config, ExportKinds
from models.parcel import Parcel
from models.taxpayer import Taxpayer
from repositories.database import Database
from repositories.parcel_repository import ParcelRepository
from repositories.sync_ledger import SyncLedger
from repositories.taxpayer_repository import TaxpayerRepository
from services.attachment_cleanup import AttachmentResult, delete_attachments, existing_attachments


@dataclass
class PreparedChunk:
    """Payload for one batch request."""
    ids: List[int]
    dtos: List[Dict[str, Any]]
    # DTO position -> files sent as files_<position>
    attachments: Dict[int, List[Path]] = field(default_factory=dict)

    @property
    def file_count(self) -> int:
        return sum(len(paths) for paths in self.attachments.values())


class ExportStrategy(ABC):
    """
    Abstract base class for export strategies.

    Subclasses set `kind`, `table` and `endpoint`.
    """

    kind: str = ""
    table: str = ""

    def __init__(self, db: Database, photos_dir: Optional[Path] = None):
        self.db = db
        self.photos_dir = photos_dir if photos_dir is not None else Config.PHOTOS_DIR
        self.ledger = SyncLedger(db, self.table)

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Backend path receiving this kind's batches."""
        pass

    @abstractmethod
    def prepare(self, rows: List[Any]) -> PreparedChunk:
        """
        Build the request payload for a chunk of pending rows.

        Args:
            rows: rows returned by the ledger's select_pending

        Returns:
            PreparedChunk whose ids are exactly the chunk's ids
        """
        pass

    @abstractmethod
    def cleanup(self, ids: List[int]) -> List[AttachmentResult]:
        """
        Remove accepted records and their attachments.

        Returns:
            One AttachmentResult per file the records referenced
        """
        pass


class TaxpayerExportStrategy(ExportStrategy):
    """Taxpayers with their ID photos."""

    kind = ExportKinds.TAXPAYERS
    table = "taxpayers"

    def __init__(self, db: Database, photos_dir: Optional[Path] = None):
        super().__init__(db, photos_dir)
        self.repository = TaxpayerRepository(db, self.photos_dir)

    @property
    def endpoint(self) -> str:
        return Config.TAXPAYER_EXPORT_ENDPOINT

    def prepare(self, rows: List[Any]) -> PreparedChunk:
        taxpayers = [Taxpayer.from_row(row) for row in rows]
        attachments = {}
        for index, taxpayer in enumerate(taxpayers):
            paths = existing_attachments(taxpayer.id_photo_paths, self.photos_dir)
            if paths:
                attachments[index] = paths
        return PreparedChunk(
            ids=[t.id for t in taxpayers],
            dtos=[t.to_dto() for t in taxpayers],
            attachments=attachments,
        )

    def cleanup(self, ids: List[int]) -> List[AttachmentResult]:
        paths = self.repository.delete_exported(ids)
        return delete_attachments(paths, self.photos_dir)


class ParcelExportStrategy(ExportStrategy):
    """Parcels with nested buildings and owner; no files."""

    kind = ExportKinds.PARCELS
    table = "parcels"

    def __init__(self, db: Database, photos_dir: Optional[Path] = None):
        super().__init__(db, photos_dir)
        self.repository = ParcelRepository(db)

    @property
    def endpoint(self) -> str:
        return Config.PARCEL_EXPORT_ENDPOINT

    def prepare(self, rows: List[Any]) -> PreparedChunk:
        parcels = self.repository.load_details([Parcel.from_row(row) for row in rows])
        return PreparedChunk(
            ids=[p.id for p in parcels],
            dtos=[p.to_dto() for p in parcels],
        )

    def cleanup(self, ids: List[int]) -> List[AttachmentResult]:
        self.repository.delete_exported(ids)
        return []
