# -*- coding: utf-8 -*-
"""
Controlled values for taxpayer and parcel records.

Each enum stores the exact string the backend expects. Parsing is tolerant:
unknown or missing values fall back to the member the field forms default to.
"""

from enum import Enum
from typing import Optional


class _ValueEnum(Enum):
    """Enum whose members are parsed from their stored string value."""

    @classmethod
    def _default(cls):
        return None

    @classmethod
    def _normalize(cls, value: str) -> str:
        return value.strip().upper()

    @classmethod
    def from_value(cls, value):
        if value is None:
            return cls._default()
        if isinstance(value, cls):
            return value
        key = cls._normalize(str(value))
        for member in cls:
            if cls._normalize(member.value) == key:
                return member
        fallback = cls._default()
        return fallback if fallback is not None else list(cls)[0]


# ==================== Taxpayer ====================

class NifType(_ValueEnum):
    """Origin of the tax identification number."""
    DGI = "DGI"
    PROVISOIRE = "PROVISOIRE"


class TaxpayerType(_ValueEnum):
    PHYSIQUE = "PHYSIQUE"
    MORALE = "MORALE"
    INFORMEL = "INFORMEL"

    @classmethod
    def _default(cls):
        return cls.PHYSIQUE

    @property
    def display_name(self) -> str:
        names = {
            TaxpayerType.PHYSIQUE: "Personne Physique",
            TaxpayerType.MORALE: "Personne Morale",
            TaxpayerType.INFORMEL: "Informel",
        }
        return names[self]


class RecordOrigin(_ValueEnum):
    """Where the taxpayer file was created."""
    RECENSEMENT = "RECENSEMENT"
    BUREAU = "BUREAU"
    IMPORT = "IMPORT"

    @classmethod
    def _default(cls):
        return cls.BUREAU


class LegalForm(_ValueEnum):
    SARL = "SARL"
    SA = "SA"
    SNC = "SNC"
    GIE = "GIE"

    @property
    def display_name(self) -> str:
        names = {
            LegalForm.SARL: "SARL - Société à Responsabilité Limitée",
            LegalForm.SA: "SA - Société Anonyme",
            LegalForm.SNC: "SNC - Société en Nom Collectif",
            LegalForm.GIE: "GIE - Groupement d'Intérêt Économique",
        }
        return names[self]


# ==================== Parcel ====================

class _LowerValueEnum(_ValueEnum):

    @classmethod
    def _normalize(cls, value: str) -> str:
        return value.strip().lower()


class ParcelStatus(_LowerValueEnum):
    ACTIVE = "active"
    MERGED = "fusionnée"
    SUBDIVIDED = "subdivisée"
    ARCHIVED = "archivée"

    @classmethod
    def _default(cls):
        return cls.ACTIVE


class BuildingType(_LowerValueEnum):
    HOUSE = "maison"
    APARTMENT_BLOCK = "immeuble"
    WAREHOUSE = "entrepôt"
    SHOP = "commerce"
    OFFICE = "bureau"
    OTHER = "autre"

    @classmethod
    def _default(cls):
        return cls.OTHER


class MainUse(_LowerValueEnum):
    RESIDENTIAL = "résidentiel"
    COMMERCIAL = "commercial"
    MIXED = "mixte"
    OTHER = "autre"

    @classmethod
    def _default(cls):
        return cls.OTHER


class BuildingStatus(_LowerValueEnum):
    IN_SERVICE = "en service"
    RUINED = "en ruine"
    UNDER_CONSTRUCTION = "en chantier"
    OTHER = "autre"

    @classmethod
    def _default(cls):
        return cls.OTHER


class OwnerType(_LowerValueEnum):
    PHYSIQUE = "physique"
    MORALE = "morale"

    @classmethod
    def _default(cls):
        return cls.PHYSIQUE


def enum_value(member: Optional[Enum]) -> Optional[str]:
    """Stored value of an optional enum member."""
    return member.value if member is not None else None
