# -*- coding: utf-8 -*-
"""
Field Census Data Models
"""

from .sync_status import SyncStatus, SyncableRecord, LEDGER_COLUMNS
from .taxpayer import Taxpayer
from .parcel import Parcel, Building, ParcelOwner
from .reference import ReferenceRow, REFERENCE_TABLES

__all__ = [
    "SyncStatus",
    "SyncableRecord",
    "LEDGER_COLUMNS",
    "Taxpayer",
    "Parcel",
    "Building",
    "ParcelOwner",
    "ReferenceRow",
    "REFERENCE_TABLES",
]
