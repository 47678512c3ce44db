# -*- coding: utf-8 -*-
"""
Shared lookup (reference) tables.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ReferenceRow:
    """One id/label pair. The id is assigned by the backend and never regenerated."""
    id: int
    label: str


# Local table name -> key in the backend's /reftypes/all response.
# Order matters only for logging and count reporting.
REFERENCE_TABLES: Dict[str, str] = {
    "ref_activity_type": "typeActivites",
    "ref_zone_type": "zoneTypes",
    "ref_commune": "communes",
    "ref_quartier": "quartiers",
    "ref_avenue": "avenues",
}
