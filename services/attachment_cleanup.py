# -*- coding: utf-8 -*-
"""
Best-effort removal of files attached to records (ID photos).

Deleting a file never raises: the outcome is returned as an
AttachmentResult and failures are only logged, so a leftover file can
never block removing the record that referenced it.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from utils.logger import get_logger

logger = get_logger(__name__)


class AttachmentOutcome(Enum):
    DELETED = "deleted"
    MISSING = "missing"
    ERROR = "error"


@dataclass(frozen=True)
class AttachmentResult:
    """Outcome of deleting one attachment."""
    path: str
    outcome: AttachmentOutcome
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not AttachmentOutcome.ERROR


def resolve_attachment_path(path: Union[str, Path], base_dir: Optional[Path] = None) -> Path:
    """Relative paths are resolved against the photos directory."""
    candidate = Path(path)
    if not candidate.is_absolute() and base_dir is not None:
        candidate = Path(base_dir) / candidate
    return candidate


def delete_attachment(path: Union[str, Path], base_dir: Optional[Path] = None) -> AttachmentResult:
    """Delete one file, reporting rather than raising."""
    target = resolve_attachment_path(path, base_dir)
    try:
        os.remove(target)
    except FileNotFoundError:
        logger.debug(f"Attachment already gone: {target}")
        return AttachmentResult(str(target), AttachmentOutcome.MISSING)
    except OSError as e:
        logger.warning(f"Could not delete attachment {target}: {e}")
        return AttachmentResult(str(target), AttachmentOutcome.ERROR, str(e))
    logger.debug(f"Deleted attachment: {target}")
    return AttachmentResult(str(target), AttachmentOutcome.DELETED)


def delete_attachments(paths: Iterable[Union[str, Path]],
                       base_dir: Optional[Path] = None) -> List[AttachmentResult]:
    """Delete every path; empty entries are ignored."""
    results = [delete_attachment(p, base_dir) for p in paths if p]
    failures = [r for r in results if not r.ok]
    if failures:
        logger.warning(f"{len(failures)} of {len(results)} attachment(s) could not be deleted")
    return results


def existing_attachments(paths: Iterable[Union[str, Path]],
                         base_dir: Optional[Path] = None) -> List[Path]:
    """Paths that still exist on disk, in input order."""
    found = []
    for path in paths:
        if not path:
            continue
        target = resolve_attachment_path(path, base_dir)
        if target.is_file():
            found.append(target)
        else:
            logger.warning(f"Attachment not found, skipped: {target}")
    return found
