# -*- coding: utf-8 -*-
"""
Tests for SyncController worker threads and signals.
"""
import sys
from unittest.mock import MagicMock

import pytest
from PyQt5.QtWidgets import QApplication

from controllers.sync_controller import SyncController
from services.exceptions import AuthenticationException, SyncBusyError
from services.export.export_manager import ExportManager, ExportSummary
from services.refs_sync_service import RefsSyncResult, ReferenceSyncService


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication for tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app


@pytest.fixture
def export_manager():
    manager = MagicMock(spec=ExportManager)
    manager.get_available_kinds.return_value = ["taxpayers", "parcels"]
    manager.export_all.return_value = ExportSummary(kind="taxpayers", synced_count=3)
    return manager


@pytest.fixture
def refs_service():
    service = MagicMock(spec=ReferenceSyncService)
    service.synchronize.return_value = RefsSyncResult(True, "ok", {"ref_commune": 24})
    return service


@pytest.fixture
def controller(qapp, export_manager, refs_service):
    controller = SyncController(export_manager, refs_service)
    yield controller
    controller.wait()


def test_export_emits_summary(qtbot, controller, export_manager):
    with qtbot.waitSignal(controller.export_finished, timeout=5000) as blocker:
        result = controller.start_export("taxpayers", chunk_size=10)

    assert result.success
    assert result.data == "export:taxpayers"
    assert blocker.args[0].synced_count == 3
    assert export_manager.export_all.call_args.args == ("taxpayers",)
    assert export_manager.export_all.call_args.kwargs["chunk_size"] == 10


def test_unknown_kind_rejected(controller, export_manager):
    result = controller.start_export("buildings")

    assert not result.success
    export_manager.export_all.assert_not_called()


def test_progress_forwarded(qtbot, controller, export_manager):
    def export_all(kind, chunk_size=None, progress=None):
        progress(2, 5)
        return ExportSummary(kind=kind, synced_count=2)

    export_manager.export_all.side_effect = export_all

    with qtbot.waitSignal(controller.progress_changed, timeout=5000) as blocker:
        controller.start_export("parcels")

    assert blocker.args == [2, 5]


def test_auth_failure_still_delivers_partial_summary(qtbot, controller, export_manager):
    partial = ExportSummary(kind="taxpayers", synced_count=20, failed_count=20)
    export_manager.export_all.side_effect = AuthenticationException("Session refusée", summary=partial)

    with qtbot.waitSignal(controller.export_finished, timeout=5000) as blocker:
        controller.start_export("taxpayers")

    assert blocker.args[0] is partial
    assert "Session refusée" in controller.last_error


def test_busy_export_reports_error(qtbot, controller, export_manager):
    export_manager.export_all.side_effect = SyncBusyError("export:taxpayers", "refs")

    with qtbot.waitSignal(controller.operation_error, timeout=5000) as blocker:
        controller.start_export("taxpayers")

    assert blocker.args[0] == "export:taxpayers"
    assert "refs" in blocker.args[1]


def test_unexpected_export_error_ends_operation(qtbot, controller, export_manager):
    export_manager.export_all.side_effect = RuntimeError("disk unplugged")

    with qtbot.waitSignal(controller.operation_error, timeout=5000) as blocker:
        controller.start_export("taxpayers")

    assert blocker.args == ["export:taxpayers", "disk unplugged"]
    assert not controller.is_loading


def test_unexpected_reference_sync_error_ends_operation(qtbot, controller, refs_service):
    refs_service.synchronize.side_effect = RuntimeError("boom")

    with qtbot.waitSignal(controller.operation_error, timeout=5000) as blocker:
        controller.start_reference_sync()

    assert blocker.args == ["refs", "boom"]
    assert not controller.is_loading


def test_reference_sync_emits_result(qtbot, controller, refs_service):
    with qtbot.waitSignal(controller.reference_sync_finished, timeout=5000) as blocker:
        result = controller.start_reference_sync()

    assert result.success
    assert blocker.args[0].counts == {"ref_commune": 24}
    refs_service.synchronize.assert_called_once()


def test_failed_reference_sync_reports_message(qtbot, controller, refs_service):
    refs_service.synchronize.return_value = RefsSyncResult(False, "Format de réponse invalide")

    with qtbot.waitSignal(controller.operation_error, timeout=5000) as blocker:
        controller.start_reference_sync()

    assert blocker.args == ["refs", "Format de réponse invalide"]


def test_pending_counts(controller, export_manager):
    export_manager.pending_count.side_effect = lambda kind: {"taxpayers": 3, "parcels": 1}[kind]

    result = controller.get_pending_counts()

    assert result.success
    assert result.data == {"taxpayers": 3, "parcels": 1}
