# -*- coding: utf-8 -*-
"""
Sync Controller
===============
Runs export sessions and reference resyncs off the UI thread.

Handles:
- Taxpayer / parcel export sessions
- Reference data resynchronization
- Pending-record status for the sync screen
"""

from typing import Dict, Optional

from PyQt5.QtCore import QThread, pyqtSignal

from controllers.base_controller import BaseController, OperationResult
from services.exceptions import AuthenticationException, LocalStorageException, SyncBusyError
from services.export.export_manager import ExportManager
from services.refs_sync_service import ReferenceSyncService
from utils.logger import get_logger

logger = get_logger(__name__)


class ExportWorker(QThread):
    """Background worker for one export session."""

    progress = pyqtSignal(int, int)  # processed, total
    completed = pyqtSignal(object)  # ExportSummary
    failed = pyqtSignal(object)  # exception ending the session

    def __init__(self, export_manager: ExportManager, kind: str, chunk_size: Optional[int] = None):
        super().__init__()
        self.export_manager = export_manager
        self.kind = kind
        self.chunk_size = chunk_size

    def run(self):
        """Run the export in background."""
        def on_progress(current, total):
            self.progress.emit(current, total)

        try:
            summary = self.export_manager.export_all(
                self.kind, chunk_size=self.chunk_size, progress=on_progress
            )
        except (SyncBusyError, AuthenticationException, LocalStorageException, ValueError) as e:
            self.failed.emit(e)
            return
        except Exception as e:
            logger.exception(f"Export worker for {self.kind} crashed")
            self.failed.emit(e)
            return
        self.completed.emit(summary)


class RefsSyncWorker(QThread):
    """Background worker for a reference resync."""

    completed = pyqtSignal(object)  # RefsSyncResult
    failed = pyqtSignal(object)

    def __init__(self, refs_service: ReferenceSyncService):
        super().__init__()
        self.refs_service = refs_service

    def run(self):
        try:
            result = self.refs_service.synchronize()
        except SyncBusyError as e:
            self.failed.emit(e)
            return
        except Exception as e:
            logger.exception("Reference sync worker crashed")
            self.failed.emit(e)
            return
        self.completed.emit(result)


class SyncController(BaseController):
    """
    Controller for the sync screen.

    Signals carry the service results unchanged so the view can render
    partial success, total failure and "nothing to send" distinctly.
    """

    export_finished = pyqtSignal(object)  # ExportSummary
    reference_sync_finished = pyqtSignal(object)  # RefsSyncResult
    progress_changed = pyqtSignal(int, int)  # processed, total

    def __init__(self, export_manager: ExportManager, refs_service: ReferenceSyncService, parent=None):
        super().__init__(parent)
        self.export_manager = export_manager
        self.refs_service = refs_service
        self._workers: Dict[str, QThread] = {}

    def is_running(self, operation: str = None) -> bool:
        if operation is None:
            return any(w.isRunning() for w in self._workers.values())
        worker = self._workers.get(operation)
        return worker is not None and worker.isRunning()

    def start_export(self, kind: str, chunk_size: Optional[int] = None) -> OperationResult:
        """Start an export session for one entity kind in a worker thread."""
        operation = f"export:{kind}"
        if kind not in self.export_manager.get_available_kinds():
            return OperationResult.fail(f"Type d'export inconnu: {kind}")
        if self.is_running(operation):
            return OperationResult.fail("Un export de ce type est déjà en cours")

        self._log_operation("start_export", kind=kind, chunk_size=chunk_size)
        worker = ExportWorker(self.export_manager, kind, chunk_size)
        worker.progress.connect(self.progress_changed.emit)
        worker.completed.connect(lambda summary: self._on_export_completed(operation, summary))
        worker.failed.connect(lambda error: self._on_export_failed(operation, error))
        self._workers[operation] = worker
        self._emit_started(operation)
        worker.start()
        return OperationResult.ok(data=operation)

    def _on_export_completed(self, operation: str, summary):
        self._emit_completed(operation, summary.success)
        self.export_finished.emit(summary)

    def _on_export_failed(self, operation: str, error: Exception):
        self._emit_error(operation, str(error))
        summary = getattr(error, "summary", None)
        if summary is not None:
            self.export_finished.emit(summary)

    def start_reference_sync(self) -> OperationResult:
        """Start a reference resync in a worker thread."""
        operation = "refs"
        if self.is_running(operation):
            return OperationResult.fail("La synchronisation des références est déjà en cours")

        self._log_operation("start_reference_sync")
        worker = RefsSyncWorker(self.refs_service)
        worker.completed.connect(lambda result: self._on_refs_completed(operation, result))
        worker.failed.connect(lambda error: self._emit_error(operation, str(error)))
        self._workers[operation] = worker
        self._emit_started(operation)
        worker.start()
        return OperationResult.ok(data=operation)

    def _on_refs_completed(self, operation: str, result):
        if result.success:
            self._emit_completed(operation, True)
        else:
            self._emit_error(operation, result.message)
        self.reference_sync_finished.emit(result)

    def get_pending_counts(self) -> OperationResult:
        """Pending (not yet synced) record count per kind."""
        return self.execute_with_error_handling(
            "pending_counts",
            lambda: {kind: self.export_manager.pending_count(kind)
                     for kind in self.export_manager.get_available_kinds()}
        )

    def wait(self, timeout_ms: int = 30000) -> bool:
        """Block until every worker has finished (used on shutdown)."""
        return all(w.wait(timeout_ms) for w in self._workers.values())
