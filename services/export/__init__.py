# -*- coding: utf-8 -*-
"""Export services package."""

from .export_strategy import (
    ExportStrategy, ParcelExportStrategy, PreparedChunk, TaxpayerExportStrategy,
)
from .export_manager import ChunkResult, ExportManager, ExportStatus, ExportSummary

__all__ = [
    'ExportStrategy', 'TaxpayerExportStrategy', 'ParcelExportStrategy', 'PreparedChunk',
    'ExportManager', 'ExportSummary', 'ExportStatus', 'ChunkResult',
]
