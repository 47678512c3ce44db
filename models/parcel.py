# -*- coding: utf-8 -*-
"""
Parcel entity model with its dependent buildings and owner.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.enums import (
    BuildingStatus, BuildingType, MainUse, OwnerType, ParcelStatus,
)
from models.sync_status import SyncableRecord
from utils.datetime_utils import from_isoformat, to_isoformat


def _compact(dto: Dict[str, Any]) -> Dict[str, Any]:
    """Drop null fields; the parcel endpoint treats absent and null alike."""
    return {k: v for k, v in dto.items() if v is not None}


@dataclass
class Building:
    """Building standing on a parcel (many per parcel)."""

    id: Optional[int] = None
    parcel_id: Optional[int] = None
    building_type: BuildingType = BuildingType.OTHER
    floor_count: Optional[int] = None
    construction_year: Optional[int] = None
    built_area_m2: Optional[float] = None
    main_use: MainUse = MainUse.OTHER
    building_status: BuildingStatus = BuildingStatus.OTHER
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.building_type = BuildingType.from_value(self.building_type)
        self.main_use = MainUse.from_value(self.main_use)
        self.building_status = BuildingStatus.from_value(self.building_status)

    @property
    def display_info(self) -> str:
        floors = self.floor_count if self.floor_count is not None else "?"
        return f"{self.building_type.value} – {self.main_use.value} ({floors} étages)"

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parcel_id": self.parcel_id,
            "building_type": self.building_type.value,
            "floor_count": self.floor_count,
            "construction_year": self.construction_year,
            "built_area_m2": self.built_area_m2,
            "main_use": self.main_use.value,
            "building_status": self.building_status.value,
            "created_at": to_isoformat(self.created_at),
            "updated_at": to_isoformat(self.updated_at),
        }

    @classmethod
    def from_row(cls, row) -> "Building":
        data = dict(row)
        data["created_at"] = from_isoformat(data.get("created_at")) or datetime.now()
        data["updated_at"] = from_isoformat(data.get("updated_at"))
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_dto(self) -> Dict[str, Any]:
        return _compact({
            "typeBatiment": self.building_type.value,
            "nombreEtages": self.floor_count,
            "anneeConstruction": self.construction_year,
            "surfaceBatieM2": self.built_area_m2,
            "usagePrincipal": self.main_use.value,
            "statutBatiment": self.building_status.value,
        })


@dataclass
class ParcelOwner:
    """Owner of a parcel (at most one per parcel)."""

    id: Optional[int] = None
    parcel_id: Optional[int] = None
    owner_type: OwnerType = OwnerType.PHYSIQUE
    name: Optional[str] = None
    nif: Optional[str] = None
    contact: Optional[str] = None
    postal_address: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.owner_type = OwnerType.from_value(self.owner_type)

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parcel_id": self.parcel_id,
            "owner_type": self.owner_type.value,
            "name": self.name,
            "nif": self.nif,
            "contact": self.contact,
            "postal_address": self.postal_address,
            "created_at": to_isoformat(self.created_at),
            "updated_at": to_isoformat(self.updated_at),
        }

    @classmethod
    def from_row(cls, row) -> "ParcelOwner":
        data = dict(row)
        data["created_at"] = from_isoformat(data.get("created_at")) or datetime.now()
        data["updated_at"] = from_isoformat(data.get("updated_at"))
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_dto(self) -> Dict[str, Any]:
        return _compact({
            "typePersonne": self.owner_type.value,
            "nomRaisonSociale": self.name,
            "nif": self.nif,
            "contact": self.contact,
            "adressePostale": self.postal_address,
        })


@dataclass
class Parcel(SyncableRecord):
    """
    Real-estate parcel.

    The free-text address columns predate the reference tables and are
    kept for old records; exports send the reference ids.
    """

    parcel_code: Optional[str] = None
    cadastral_reference: Optional[str] = None

    # Legacy free-text address
    commune_name: Optional[str] = None
    quartier_name: Optional[str] = None
    street_avenue: Optional[str] = None
    address_number: Optional[str] = None

    # Address (reference table ids)
    commune_id: Optional[int] = None
    quartier_id: Optional[int] = None
    avenue_id: Optional[int] = None
    street: Optional[str] = None
    parcel_number: Optional[str] = None

    area_m2: Optional[float] = None
    gps_lat: Optional[float] = None
    gps_lon: Optional[float] = None
    parcel_status: ParcelStatus = ParcelStatus.ACTIVE
    source: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    # Dependents, loaded on demand by the repository
    buildings: List[Building] = field(default_factory=list)
    owner: Optional[ParcelOwner] = None

    def __post_init__(self):
        super().__post_init__()
        self.parcel_status = ParcelStatus.from_value(self.parcel_status)

    @property
    def main_address(self) -> str:
        parts = [self.address_number, self.street_avenue, self.quartier_name, self.commune_name]
        return ", ".join(p for p in parts if p)

    @property
    def has_gps(self) -> bool:
        return self.gps_lat is not None and self.gps_lon is not None

    def to_row(self) -> Dict[str, Any]:
        """Column values for the parcels table (dependents excluded)."""
        row = {
            "id": self.id,
            "parcel_code": self.parcel_code,
            "cadastral_reference": self.cadastral_reference,
            "commune_name": self.commune_name,
            "quartier_name": self.quartier_name,
            "street_avenue": self.street_avenue,
            "address_number": self.address_number,
            "commune_id": self.commune_id,
            "quartier_id": self.quartier_id,
            "avenue_id": self.avenue_id,
            "street": self.street,
            "parcel_number": self.parcel_number,
            "area_m2": self.area_m2,
            "gps_lat": self.gps_lat,
            "gps_lon": self.gps_lon,
            "parcel_status": self.parcel_status.value,
            "source": self.source,
            "created_at": to_isoformat(self.created_at),
            "updated_at": to_isoformat(self.updated_at),
        }
        row.update(self.ledger_to_row())
        return row

    @classmethod
    def from_row(cls, row) -> "Parcel":
        data = dict(row)
        for field_name in ("created_at", "updated_at", "last_sync_at"):
            data[field_name] = from_isoformat(data.get(field_name))
        if data.get("created_at") is None:
            data.pop("created_at", None)
        data.pop("buildings", None)
        data.pop("owner", None)
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_dto(self) -> Dict[str, Any]:
        """Map to the backend's ParcelleDto, dependents nested."""
        dto = _compact({
            "localId": self.id,
            "statutParcelle": self.parcel_status.value,
            "codeParcelle": self.parcel_code,
            "referenceCadastrale": self.cadastral_reference,
            "numeroAdresse": self.address_number,
            "rue": self.street,
            "numeroParcelle": self.parcel_number,
            "superficieM2": self.area_m2,
            "gpsLat": self.gps_lat,
            "gpsLon": self.gps_lon,
            "sourceDonnee": self.source,
            "commune": self.commune_id,
            "quartier": self.quartier_id,
            "rueAvenue": self.avenue_id,
        })
        dto["batiments"] = [b.to_dto() for b in self.buildings]
        dto["personnes"] = [self.owner.to_dto()] if self.owner else []
        return dto
