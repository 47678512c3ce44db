# -*- coding: utf-8 -*-
"""
Tests for the taxpayer and parcel repositories.
"""
import json

import pytest

from models.enums import TaxpayerType
from models.sync_status import SyncStatus
from models.taxpayer import Taxpayer
from services.attachment_cleanup import AttachmentOutcome
from services.exceptions import ValidationException


class TestTaxpayerRepository:

    def test_create_and_read_back(self, taxpayer_repo, make_taxpayer):
        created = make_taxpayer(email="jean@example.cd", gps_latitude=-4.32, gps_longitude=15.31)

        loaded = taxpayer_repo.get_by_id(created.id)

        assert loaded.full_name == created.full_name
        assert loaded.email == "jean@example.cd"
        assert loaded.has_location
        assert loaded.sync_status is SyncStatus.PENDING

    def test_photo_paths_stored_as_json(self, db, make_taxpayer):
        taxpayer = make_taxpayer(id_photo_paths=["/a.jpg", "/b.jpg"])

        raw = db.scalar("SELECT id_photo_paths FROM taxpayers WHERE id = ?", (taxpayer.id,))

        assert json.loads(raw) == ["/a.jpg", "/b.jpg"]

    def test_legacy_single_photo_path_is_read(self, db, taxpayer_repo, make_taxpayer):
        taxpayer = make_taxpayer()
        db.execute_write("UPDATE taxpayers SET id_photo_paths = ? WHERE id = ?", ("/old/photo.jpg", taxpayer.id))

        assert taxpayer_repo.get_by_id(taxpayer.id).id_photo_paths == ["/old/photo.jpg"]

    def test_validation(self, taxpayer_repo):
        with pytest.raises(ValidationException) as exc:
            taxpayer_repo.create(Taxpayer(last_name="Mbala", phone1=""))
        assert exc.value.field == "phone1"

        with pytest.raises(ValidationException) as exc:
            taxpayer_repo.create(Taxpayer(taxpayer_type=TaxpayerType.MORALE, phone1="0810000000"))
        assert exc.value.field == "company_name"

    def test_search(self, taxpayer_repo, make_taxpayer):
        make_taxpayer(last_name="Tshisekedi")
        make_taxpayer(last_name="Lukusa")

        results = taxpayer_repo.search(search_text="Tshis")

        assert [t.last_name for t in results] == ["Tshisekedi"]

    def test_update_keeps_ledger_state(self, db, taxpayer_repo, make_taxpayer):
        from repositories.sync_ledger import SyncLedger
        taxpayer = make_taxpayer()
        SyncLedger(db, "taxpayers").mark_failed([taxpayer.id], "boom")

        taxpayer.email = "new@example.cd"
        taxpayer_repo.update(taxpayer)

        loaded = taxpayer_repo.get_by_id(taxpayer.id)
        assert loaded.email == "new@example.cd"
        assert loaded.sync_status is SyncStatus.FAILED
        assert loaded.sync_attempts == 1

    def test_delete_purges_photos(self, taxpayer_repo, make_taxpayer, photos_dir):
        photo = photos_dir / "id_front.jpg"
        photo.write_bytes(b"jpeg")
        taxpayer = make_taxpayer(id_photo_paths=[str(photo), str(photos_dir / "gone.jpg")])

        results = taxpayer_repo.delete(taxpayer.id)

        assert taxpayer_repo.get_by_id(taxpayer.id) is None
        assert not photo.exists()
        assert [r.outcome for r in results] == [AttachmentOutcome.DELETED, AttachmentOutcome.MISSING]

    def test_delete_exported_returns_photo_paths(self, taxpayer_repo, make_taxpayer):
        a = make_taxpayer(id_photo_paths=["/p/a.jpg"])
        b = make_taxpayer()

        paths = taxpayer_repo.delete_exported([a.id, b.id])

        assert paths == ["/p/a.jpg"]
        assert taxpayer_repo.count() == 0


class TestParcelRepository:

    def test_create_with_dependents(self, parcel_repo, make_parcel):
        created = make_parcel(buildings=2)

        loaded = parcel_repo.get_by_id(created.id)

        assert len(loaded.buildings) == 2
        assert loaded.owner.name == "Kabila Trading"
        assert loaded.sync_status is SyncStatus.PENDING

    def test_set_owner_replaces_existing(self, db, parcel_repo, make_parcel):
        from models.parcel import ParcelOwner
        parcel = make_parcel()

        parcel_repo.set_owner(parcel.id, ParcelOwner(name="Nouveau"))

        assert db.scalar("SELECT COUNT(*) FROM parcel_owners WHERE parcel_id = ?", (parcel.id,)) == 1
        assert parcel_repo.get_by_id(parcel.id).owner.name == "Nouveau"

    def test_delete_exported_removes_dependents(self, db, parcel_repo, make_parcel):
        exported = make_parcel(buildings=3)
        kept = make_parcel(buildings=1)

        assert parcel_repo.delete_exported([exported.id]) == 1

        assert db.scalar("SELECT COUNT(*) FROM buildings") == 1
        assert db.scalar("SELECT COUNT(*) FROM parcel_owners") == 1
        assert parcel_repo.get_by_id(kept.id) is not None

    def test_dto_nests_buildings_and_owner(self, parcel_repo, make_parcel):
        parcel = parcel_repo.get_by_id(make_parcel(buildings=1).id)

        dto = parcel.to_dto()

        assert dto["localId"] == parcel.id
        assert dto["commune"] == 4
        assert dto["batiments"][0]["nombreEtages"] == 1
        assert dto["personnes"][0]["nomRaisonSociale"] == "Kabila Trading"
        assert "rueAvenue" not in dto
