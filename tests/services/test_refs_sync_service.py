# -*- coding: utf-8 -*-
"""
Tests for reference data resynchronization.
"""
import pytest

from models.reference import ReferenceRow
from repositories.reference_repository import ReferenceRepository
from services.exceptions import (
    ApiException, AuthenticationException, NetworkException, SyncBusyError,
)
from services.refs_sync_service import ReferenceSyncService, parse_reference_rows
from services.sync_gate import SyncGate


def _full_response():
    return {
        "typeActivites": [{"id": 1, "libelle": "Commerce"}, {"id": 2, "libelle": "Transport"}],
        "zoneTypes": [{"id": 10, "libelle": "Résidentielle"}],
        "communes": [{"id": 4, "libelle": "Gombe"}, {"id": 30, "libelle": "Maluku"}],
        "quartiers": [{"id": 7, "libelle": "Golf"}],
        "avenues": [{"id": 12, "libelle": "Avenue du Commerce"}],
    }


@pytest.fixture
def gate():
    return SyncGate()


@pytest.fixture
def service(db, api_client, auth_service, gate):
    return ReferenceSyncService(db, api_client, auth_service, gate)


@pytest.fixture
def repo(db):
    return ReferenceRepository(db)


class TestParseReferenceRows:

    def test_tolerant_parse(self):
        rows = parse_reference_rows([
            {"id": 1, "libelle": " Commerce "},
            {"id": "2", "libelle": "Transport"},
            {"id": "x", "libelle": "Bad id"},
            {"id": True, "libelle": "Bool id"},
            {"id": 3, "libelle": "  "},
            {"id": 1, "libelle": "Duplicate"},
            {"libelle": "No id"},
            "not a dict",
        ])

        assert rows == [ReferenceRow(1, "Commerce"), ReferenceRow(2, "Transport")]

    def test_not_a_list(self):
        assert parse_reference_rows(None) is None
        assert parse_reference_rows({"id": 1}) is None

    def test_empty_list(self):
        assert parse_reference_rows([]) == []


class TestSynchronize:

    def test_replaces_every_table(self, service, api_client, auth_service, repo):
        api_client.get_reference_data.return_value = _full_response()

        result = service.synchronize()

        assert result.success
        assert result.counts["ref_commune"] == 2
        assert repo.get_label("ref_commune", 30) == "Maluku"
        assert repo.counts()["ref_activity_type"] == 2
        auth_service.authenticate.assert_called_once()
        auth_service.logout.assert_called_once()

    def test_missing_key_keeps_table(self, service, api_client, repo):
        response = _full_response()
        del response["avenues"]
        api_client.get_reference_data.return_value = response

        result = service.synchronize()

        assert result.success
        assert "ref_avenue" not in result.counts
        assert repo.counts()["ref_avenue"] == 10

    def test_explicit_empty_list_empties_table(self, service, api_client, repo):
        response = _full_response()
        response["quartiers"] = []
        api_client.get_reference_data.return_value = response

        service.synchronize()

        assert repo.counts()["ref_quartier"] == 0

    def test_non_dict_response(self, service, api_client, repo):
        api_client.get_reference_data.return_value = "<html>maintenance</html>"
        before = repo.counts()

        result = service.synchronize()

        assert not result.success
        assert repo.counts() == before

    @pytest.mark.parametrize("error", [ApiException("Erreur serveur", 500), NetworkException("timeout")])
    def test_fetch_errors_reported(self, service, api_client, repo, error):
        api_client.get_reference_data.side_effect = error
        before = repo.counts()

        result = service.synchronize()

        assert not result.success
        assert result.message
        assert repo.counts() == before

    def test_authentication_failure_reported(self, service, api_client, auth_service):
        auth_service.authenticate.side_effect = AuthenticationException("Identifiants invalides")

        result = service.synchronize()

        assert not result.success
        assert "Identifiants invalides" in result.message
        api_client.get_reference_data.assert_not_called()

    def test_without_auth_service(self, db, api_client):
        api_client.get_reference_data.return_value = _full_response()

        result = ReferenceSyncService(db, api_client).synchronize()

        assert result.success

    def test_rejected_while_export_runs(self, service, api_client, gate):
        with gate.export_session("taxpayers"):
            with pytest.raises(SyncBusyError):
                service.synchronize()

        api_client.get_reference_data.assert_not_called()

    def test_rejected_while_another_resync_runs(self, service, gate):
        with gate.reference_sync():
            with pytest.raises(SyncBusyError):
                service.synchronize()
