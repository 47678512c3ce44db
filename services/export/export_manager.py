# -*- coding: utf-8 -*-
"""
Export Manager - runs chunked export sessions.

A session authenticates once, then repeatedly selects a bounded chunk
of pending records for one entity kind, sends it in a single request
and commits the outcome of that chunk before selecting the next one.
"""

import sqlite3
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from app.config import Config
from repositories.database import Database
from services.api_client import CensusApiClient
from services.attachment_cleanup import AttachmentOutcome
from services.auth_service import AuthService
from services.exceptions import (
    ApiException, AuthenticationErrorType, AuthenticationException,
    LocalStorageException, NetworkException,
)
from services.sync_gate import SyncGate
from utils.logger import get_logger
from .export_strategy import ExportStrategy, ParcelExportStrategy, TaxpayerExportStrategy

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class ExportStatus(Enum):
    EMPTY = "empty"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ChunkResult:
    index: int
    size: int
    success: bool
    error: Optional[str] = None
    files_sent: int = 0


@dataclass
class ExportSummary:
    """Outcome of one export session."""
    kind: str
    synced_count: int = 0
    failed_count: int = 0
    chunks: List[ChunkResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    cleanup_failures: int = 0
    recovered_count: int = 0

    @property
    def status(self) -> ExportStatus:
        if self.synced_count == 0 and self.failed_count == 0:
            return ExportStatus.EMPTY
        if self.failed_count == 0:
            return ExportStatus.SUCCESS
        if self.synced_count == 0:
            return ExportStatus.FAILED
        return ExportStatus.PARTIAL

    @property
    def success(self) -> bool:
        return self.status in (ExportStatus.SUCCESS, ExportStatus.EMPTY)

    @property
    def processed_count(self) -> int:
        return self.synced_count + self.failed_count

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind,
            "status": self.status.value,
            "synced_count": self.synced_count,
            "failed_count": self.failed_count,
            "chunks": len(self.chunks),
            "errors": list(self.errors),
            "cleanup_failures": self.cleanup_failures,
            "recovered_count": self.recovered_count,
        }


class ExportManager:
    """
    Registry of export strategies and driver of export sessions.

    Usage:
        manager = ExportManager(db, api_client, auth_service, gate)
        summary = manager.export_all("taxpayers", chunk_size=20)
    """

    def __init__(self, db: Database, api_client: CensusApiClient, auth_service: AuthService,
                 gate: Optional[SyncGate] = None, stop_on_failure: Optional[bool] = None):
        self.db = db
        self.api_client = api_client
        self.auth_service = auth_service
        self.gate = gate or SyncGate()
        self.stop_on_failure = Config.EXPORT_STOP_ON_FAILURE if stop_on_failure is None else stop_on_failure
        self._strategies: Dict[str, ExportStrategy] = {}
        self._register_default_strategies()

    def _register_default_strategies(self):
        """Register built-in export strategies."""
        self.register_strategy(TaxpayerExportStrategy(self.db))
        self.register_strategy(ParcelExportStrategy(self.db))

    def register_strategy(self, strategy: ExportStrategy):
        self._strategies[strategy.kind] = strategy

    def get_strategy(self, kind: str) -> Optional[ExportStrategy]:
        return self._strategies.get(kind)

    def get_available_kinds(self) -> List[str]:
        return list(self._strategies.keys())

    def pending_count(self, kind: str) -> int:
        return self._require_strategy(kind).ledger.count_pending()

    def _require_strategy(self, kind: str) -> ExportStrategy:
        strategy = self.get_strategy(kind)
        if strategy is None:
            raise ValueError(f"Export kind '{kind}' not registered")
        return strategy

    def export_all(self, kind: str, chunk_size: Optional[int] = None,
                   max_iterations: Optional[int] = None,
                   progress: Optional[ProgressCallback] = None) -> ExportSummary:
        """
        Export every pending record of one kind, chunk by chunk.

        Args:
            kind: registered entity kind (see ExportKinds)
            chunk_size: records per request (default Config.EXPORT_CHUNK_SIZE)
            max_iterations: cap on chunks sent in this session
            progress: called with (processed, total) after each chunk

        Returns:
            ExportSummary of the session

        Raises:
            SyncBusyError: a session for this kind, or a reference resync, is running
            AuthenticationException: login failed, or the server refused the
                token mid-session (the summary so far is attached)
            LocalStorageException: the local database failed
        """
        strategy = self._require_strategy(kind)
        chunk_size = Config.EXPORT_CHUNK_SIZE if chunk_size is None else chunk_size
        if max_iterations is None:
            max_iterations = Config.EXPORT_MAX_ITERATIONS

        with self.gate.export_session(kind):
            summary = ExportSummary(kind=kind)
            try:
                self._purge_synced(strategy, summary)
                total = strategy.ledger.count_pending()
            except sqlite3.Error as e:
                raise LocalStorageException(f"Lecture des enregistrements impossible: {e}", e, kind) from e

            if chunk_size <= 0 or total == 0:
                logger.info(f"Export {kind}: nothing to send")
                return summary

            self.auth_service.authenticate()
            logger.info(f"Export {kind}: {total} pending record(s), chunks of {chunk_size}")
            try:
                self._run_session(strategy, summary, chunk_size, max_iterations, total, progress)
            except sqlite3.Error as e:
                logger.exception(f"Export {kind} aborted by a local storage error")
                raise LocalStorageException(f"Erreur de la base locale: {e}", e, kind) from e
            finally:
                self.auth_service.logout()

        logger.info(
            f"Export {kind} finished: {summary.status.value}, "
            f"synced={summary.synced_count} failed={summary.failed_count} chunks={len(summary.chunks)}"
        )
        return summary

    def _purge_synced(self, strategy: ExportStrategy, summary: ExportSummary):
        """Finish the cleanup of rows a previous session marked synced but never deleted."""
        ids = strategy.ledger.select_synced_ids()
        if not ids:
            return
        logger.warning(f"Export {strategy.kind}: cleaning up {len(ids)} already synced record(s)")
        results = strategy.cleanup(ids)
        summary.cleanup_failures += sum(1 for r in results if r.outcome is AttachmentOutcome.ERROR)
        summary.recovered_count += len(ids)

    def _run_session(self, strategy: ExportStrategy, summary: ExportSummary, chunk_size: int,
                     max_iterations: Optional[int], total: int,
                     progress: Optional[ProgressCallback]):
        # Keyset cursor: every row handed out gets an outcome, so it is never reselected
        cursor: Optional[Tuple[str, int]] = None

        while max_iterations is None or len(summary.chunks) < max_iterations:
            rows = strategy.ledger.select_pending(chunk_size, after=cursor)
            if not rows:
                break
            cursor = (rows[-1]["created_at"], rows[-1]["id"])

            index = len(summary.chunks) + 1
            chunk = self._send_chunk(strategy, summary, index, rows)

            if progress is not None:
                progress(summary.processed_count, total)

            if not chunk.success and self.stop_on_failure:
                logger.warning(f"Export {strategy.kind}: stopping after failed chunk {index}")
                break
            if len(rows) < chunk_size:
                break

    def _send_chunk(self, strategy: ExportStrategy, summary: ExportSummary, index: int,
                    rows: List) -> ChunkResult:
        ids = [row["id"] for row in rows]
        logger.info(f"Export {strategy.kind}: chunk {index} ({len(ids)} record(s))")

        try:
            prepared = strategy.prepare(rows)
            self.api_client.post_batch(strategy.endpoint, prepared.dtos, prepared.attachments)
        except ApiException as e:
            self._record_failure(strategy, summary, index, ids, str(e))
            if e.is_auth_error:
                raise AuthenticationException(
                    "Session refusée par le serveur, export interrompu",
                    AuthenticationErrorType.INVALID_CREDENTIALS,
                    summary=summary,
                ) from e
            return summary.chunks[-1]
        except NetworkException as e:
            self._record_failure(strategy, summary, index, ids, f"Erreur réseau: {e.message}")
            return summary.chunks[-1]
        except (ValueError, TypeError, KeyError, OSError) as e:
            # Payload could not be built; recorded like any refused chunk
            logger.exception(f"Export {strategy.kind}: chunk {index} payload error")
            self._record_failure(strategy, summary, index, ids, f"Données invalides: {e}")
            return summary.chunks[-1]

        # Accepted: record it first so a cleanup failure cannot cause a resend
        strategy.ledger.mark_synced(ids)
        results = strategy.cleanup(ids)
        cleanup_failures = sum(1 for r in results if r.outcome is AttachmentOutcome.ERROR)
        summary.cleanup_failures += cleanup_failures

        chunk = ChunkResult(index, len(ids), True, files_sent=prepared.file_count)
        summary.chunks.append(chunk)
        summary.synced_count += len(ids)
        return chunk

    def _record_failure(self, strategy: ExportStrategy, summary: ExportSummary, index: int,
                        ids: List[int], message: str):
        strategy.ledger.mark_failed(ids, message)
        summary.chunks.append(ChunkResult(index, len(ids), False, error=message))
        summary.failed_count += len(ids)
        summary.errors.append(message)
        logger.warning(f"Export {strategy.kind}: chunk {index} failed: {message}")
