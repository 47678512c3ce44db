# -*- coding: utf-8 -*-
"""
Taxpayer (contribuable) entity model.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.enums import LegalForm, NifType, RecordOrigin, TaxpayerType, enum_value
from models.sync_status import SyncableRecord
from utils.datetime_utils import from_isoformat, to_isoformat, to_wire_instant


def parse_photo_paths(raw: Any) -> List[str]:
    """
    Decode the photo column.

    Current rows hold a JSON array; older rows hold one bare path.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return [str(p) for p in raw if p]
    text = str(raw).strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            return [str(p) for p in json.loads(text) if p]
        except ValueError:
            return [text]
    return [text]


def encode_photo_paths(paths: List[str]) -> Optional[str]:
    return json.dumps(paths) if paths else None


@dataclass
class Taxpayer(SyncableRecord):
    """
    Taxpayer captured in the field.

    Address and activity fields are foreign keys into the shared
    reference tables; their ids are the backend's ids.
    """

    # Identification
    nif: Optional[str] = None
    nif_type: Optional[NifType] = None
    taxpayer_type: TaxpayerType = TaxpayerType.PHYSIQUE
    last_name: Optional[str] = None      # nom
    middle_name: Optional[str] = None    # post-nom
    first_name: Optional[str] = None     # prénom
    company_name: Optional[str] = None   # raison sociale
    legal_form: Optional[LegalForm] = None
    rccm_number: Optional[str] = None

    # Contact
    phone1: str = ""
    phone2: Optional[str] = None
    email: Optional[str] = None

    # Address (reference table ids)
    commune_id: Optional[int] = None
    quartier_id: Optional[int] = None
    avenue_id: Optional[int] = None
    street: Optional[str] = None
    parcel_number: Optional[str] = None

    # Activity
    record_origin: RecordOrigin = RecordOrigin.BUREAU
    activity_id: Optional[int] = None
    zone_id: Optional[int] = None
    status: Optional[int] = None

    # Location and attachments
    gps_latitude: Optional[float] = None
    gps_longitude: Optional[float] = None
    id_photo_paths: List[str] = field(default_factory=list)

    # Metadata
    registered_at: Optional[datetime] = None
    created_by: str = "SYSTEM"
    modified_at: Optional[datetime] = None
    modified_by: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        super().__post_init__()
        self.taxpayer_type = TaxpayerType.from_value(self.taxpayer_type)
        self.record_origin = RecordOrigin.from_value(self.record_origin)
        self.nif_type = NifType.from_value(self.nif_type)
        self.legal_form = LegalForm.from_value(self.legal_form)
        self.id_photo_paths = parse_photo_paths(self.id_photo_paths)

    @property
    def full_name(self) -> str:
        """Display name: company name for legal entities, else the person's names."""
        if self.taxpayer_type is TaxpayerType.MORALE:
            return self.company_name or "N/A"
        parts = [self.last_name, self.middle_name, self.first_name]
        return " ".join(p for p in parts if p)

    @property
    def main_photo(self) -> Optional[str]:
        return self.id_photo_paths[0] if self.id_photo_paths else None

    @property
    def has_location(self) -> bool:
        return self.gps_latitude is not None and self.gps_longitude is not None

    def to_row(self) -> Dict[str, Any]:
        """Convert to a dict of column values for the taxpayers table."""
        row = {
            "id": self.id,
            "nif": self.nif,
            "nif_type": enum_value(self.nif_type),
            "taxpayer_type": self.taxpayer_type.value,
            "last_name": self.last_name,
            "middle_name": self.middle_name,
            "first_name": self.first_name,
            "company_name": self.company_name,
            "phone1": self.phone1,
            "phone2": self.phone2,
            "email": self.email,
            "commune_id": self.commune_id,
            "quartier_id": self.quartier_id,
            "avenue_id": self.avenue_id,
            "street": self.street,
            "parcel_number": self.parcel_number,
            "record_origin": self.record_origin.value,
            "activity_id": self.activity_id,
            "zone_id": self.zone_id,
            "status": self.status,
            "gps_latitude": self.gps_latitude,
            "gps_longitude": self.gps_longitude,
            "id_photo_paths": encode_photo_paths(self.id_photo_paths),
            "registered_at": to_isoformat(self.registered_at),
            "created_by": self.created_by,
            "modified_at": to_isoformat(self.modified_at),
            "modified_by": self.modified_by,
            "legal_form": enum_value(self.legal_form),
            "rccm_number": self.rccm_number,
            "created_at": to_isoformat(self.created_at),
            "updated_at": to_isoformat(self.updated_at),
        }
        row.update(self.ledger_to_row())
        return row

    @classmethod
    def from_row(cls, row) -> "Taxpayer":
        """Create Taxpayer from a database row."""
        data = dict(row)
        for field_name in ("registered_at", "modified_at", "created_at", "updated_at", "last_sync_at"):
            data[field_name] = from_isoformat(data.get(field_name))
        if data.get("created_at") is None:
            data.pop("created_at", None)
        if data.get("created_by") is None:
            data.pop("created_by", None)
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_dto(self) -> Dict[str, Any]:
        """
        Map to the backend's ContribuableDto.

        localId lets the backend link the files_<n> parts to this record
        without relying on array position alone.
        """
        return {
            "localId": self.id,
            "nif": self.nif,
            "typeNif": enum_value(self.nif_type),
            "typeContribuable": self.taxpayer_type.value,
            "nom": self.last_name,
            "postNom": self.middle_name,
            "prenom": self.first_name,
            "raisonSociale": self.company_name,
            "telephone1": self.phone1,
            "telephone2": self.phone2,
            "email": self.email,
            "rue": self.street,
            "numeroParcelle": self.parcel_number,
            "origineFiche": self.record_origin.value,
            "statut": self.status,
            "gpsLatitude": self.gps_latitude,
            "gpsLongitude": self.gps_longitude,
            "dateInscription": to_wire_instant(self.registered_at),
            "dateMaj": to_wire_instant(self.modified_at),
            "formeJuridique": enum_value(self.legal_form),
            "numeroRccm": self.rccm_number,
            "refTypeActivite": self.activity_id,
            "refZoneType": self.zone_id,
            "refAvenue": self.avenue_id,
            "refQuartier": self.quartier_id,
            "refCommune": self.commune_id,
        }
