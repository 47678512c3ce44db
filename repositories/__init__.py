# -*- coding: utf-8 -*-
"""
Field Census Repository Layer
"""

# Lazy imports to avoid circular dependencies
__all__ = [
    "Database",
    "SyncLedger",
    "TaxpayerRepository",
    "ParcelRepository",
    "ReferenceRepository",
    "SettingsRepository",
]


def __getattr__(name):
    """Lazy import to avoid circular dependencies."""
    if name == "Database":
        from .database import Database
        return Database
    elif name == "SyncLedger":
        from .sync_ledger import SyncLedger
        return SyncLedger
    elif name == "TaxpayerRepository":
        from .taxpayer_repository import TaxpayerRepository
        return TaxpayerRepository
    elif name == "ParcelRepository":
        from .parcel_repository import ParcelRepository
        return ParcelRepository
    elif name == "ReferenceRepository":
        from .reference_repository import ReferenceRepository
        return ReferenceRepository
    elif name == "SettingsRepository":
        from .settings_repository import SettingsRepository
        return SettingsRepository
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
