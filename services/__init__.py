# -*- coding: utf-8 -*-
"""
Field Census Service Layer
"""

# Lazy imports to avoid circular dependencies
__all__ = [
    "CensusApiClient",
    "AuthService",
    "CredentialsService",
    "ReferenceSyncService",
    "SyncGate",
    "ExportManager",
]


def __getattr__(name):
    """Lazy import to avoid circular dependencies."""
    if name == "CensusApiClient":
        from .api_client import CensusApiClient
        return CensusApiClient
    elif name == "AuthService":
        from .auth_service import AuthService
        return AuthService
    elif name == "CredentialsService":
        from .credentials_service import CredentialsService
        return CredentialsService
    elif name == "ReferenceSyncService":
        from .refs_sync_service import ReferenceSyncService
        return ReferenceSyncService
    elif name == "SyncGate":
        from .sync_gate import SyncGate
        return SyncGate
    elif name == "ExportManager":
        from .export.export_manager import ExportManager
        return ExportManager
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
