# -*- coding: utf-8 -*-
"""
Single-flight guard for sync operations.

Rules:
    - at most one export session per entity kind
    - at most one reference resync
    - a reference resync never overlaps an export session

A caller that cannot get its slot is rejected with SyncBusyError at
once; nothing is queued.
"""

from contextlib import contextmanager
from threading import Lock
from typing import Iterator, Set

from services.exceptions import SyncBusyError
from utils.logger import get_logger

logger = get_logger(__name__)

REFS_SLOT = "refs"


def export_slot(kind: str) -> str:
    return f"export:{kind}"


class SyncGate:
    """One instance is shared by every sync entry point of the application."""

    def __init__(self):
        self._lock = Lock()
        self._active: Set[str] = set()

    @property
    def active(self) -> Set[str]:
        with self._lock:
            return set(self._active)

    def is_busy(self) -> bool:
        with self._lock:
            return bool(self._active)

    def _acquire(self, slot: str):
        with self._lock:
            if slot in self._active:
                raise SyncBusyError(slot, slot)
            if slot == REFS_SLOT and self._active:
                raise SyncBusyError(slot, ", ".join(sorted(self._active)))
            if slot != REFS_SLOT and REFS_SLOT in self._active:
                raise SyncBusyError(slot, REFS_SLOT)
            self._active.add(slot)
        logger.debug(f"Sync slot acquired: {slot}")

    def _release(self, slot: str):
        with self._lock:
            self._active.discard(slot)
        logger.debug(f"Sync slot released: {slot}")

    @contextmanager
    def export_session(self, kind: str) -> Iterator[None]:
        slot = export_slot(kind)
        self._acquire(slot)
        try:
            yield
        finally:
            self._release(slot)

    @contextmanager
    def reference_sync(self) -> Iterator[None]:
        self._acquire(REFS_SLOT)
        try:
            yield
        finally:
            self._release(REFS_SLOT)
