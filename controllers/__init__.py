# -*- coding: utf-8 -*-
"""
Controllers package - mediates between the screens and the sync services.
"""

from .base_controller import BaseController, OperationResult
from .sync_controller import SyncController, ExportWorker, RefsSyncWorker

__all__ = [
    'BaseController',
    'OperationResult',
    'SyncController',
    'ExportWorker',
    'RefsSyncWorker',
]
