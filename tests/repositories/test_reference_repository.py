# -*- coding: utf-8 -*-
"""
Tests for reference table replacement.
"""
import sqlite3
from unittest.mock import patch

import pytest

from models.reference import ReferenceRow
from repositories.reference_repository import ReferenceRepository


@pytest.fixture
def repo(db):
    return ReferenceRepository(db)


def test_seeded_on_first_run(repo):
    counts = repo.counts()

    assert counts["ref_commune"] == 24
    assert counts["ref_activity_type"] == 15
    assert counts["ref_zone_type"] == 7
    assert repo.get_label("ref_commune", 4) == "Gombe"


def test_replace_preserves_server_ids(repo):
    counts = repo.replace_all({
        "ref_commune": [ReferenceRow(101, "Gombe"), ReferenceRow(205, "Limete")],
    })

    assert counts == {"ref_commune": 2}
    assert repo.get_label("ref_commune", 205) == "Limete"
    assert {r.id for r in repo.get_rows("ref_commune")} == {101, 205}


def test_tables_not_listed_are_untouched(repo):
    repo.replace_all({"ref_commune": [ReferenceRow(1, "Gombe")]})

    assert repo.counts()["ref_avenue"] == 10


def test_replace_works_while_records_reference_old_rows(db, repo, make_taxpayer):
    taxpayer = make_taxpayer(commune_id=4)

    repo.replace_all({"ref_commune": [ReferenceRow(4, "Gombe"), ReferenceRow(30, "Nouvelle")]})

    row = db.fetch_one("SELECT commune_id FROM taxpayers WHERE id = ?", (taxpayer.id,))
    assert row["commune_id"] == 4
    assert db.adapter.foreign_keys_enabled()


def test_failure_during_insert_leaves_original_rows(db, repo):
    before = repo.get_rows("ref_zone_type")

    # Duplicate primary key fails after the delete phase has run
    with pytest.raises(sqlite3.IntegrityError):
        repo.replace_all({
            "ref_zone_type": [ReferenceRow(1, "Urbaine"), ReferenceRow(1, "Doublon")],
        })

    assert repo.get_rows("ref_zone_type") == before
    assert db.adapter.foreign_keys_enabled()


def test_failure_between_delete_and_insert_rolls_back_every_table(db, repo):
    before = repo.counts()

    with patch.object(db, "execute_many", side_effect=sqlite3.OperationalError("disk I/O error")):
        with pytest.raises(sqlite3.OperationalError):
            repo.replace_all({
                "ref_commune": [ReferenceRow(1, "Gombe")],
                "ref_avenue": [ReferenceRow(1, "Avenue Lumumba")],
            })

    assert repo.counts() == before
    assert db.adapter.foreign_keys_enabled()


def test_unknown_table_rejected(repo):
    with pytest.raises(ValueError):
        repo.replace_all({"users": []})
