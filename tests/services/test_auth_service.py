# -*- coding: utf-8 -*-
"""
Tests for credential storage and login error classification.
"""
from unittest.mock import MagicMock

import pytest

from repositories.settings_repository import SettingsRepository
from services.api_client import CensusApiClient
from services.auth_service import AuthService
from services.credentials_service import CredentialsService
from services.exceptions import (
    ApiException, AuthenticationErrorType, AuthenticationException, NetworkException,
)


@pytest.fixture
def credentials(db):
    return CredentialsService(SettingsRepository(db), fallback_username="", fallback_password="")


@pytest.fixture
def client():
    return MagicMock(spec=CensusApiClient)


@pytest.fixture
def auth(client, credentials):
    return AuthService(client, credentials)


class TestCredentialsService:

    def test_save_and_get(self, credentials):
        assert not credentials.has_credentials()

        credentials.save_credentials("  agent@dgrk.cd ", "secret")

        assert credentials.get_credentials() == ("agent@dgrk.cd", "secret")
        assert credentials.has_stored_credentials()
        assert credentials.get_stored_username() == "agent@dgrk.cd"

    def test_save_overwrites(self, credentials):
        credentials.save_credentials("first", "one")
        credentials.save_credentials("second", "two")

        assert credentials.get_credentials() == ("second", "two")

    @pytest.mark.parametrize("username,password", [("", "secret"), ("agent", ""), ("   ", "x")])
    def test_blank_values_rejected(self, credentials, username, password):
        with pytest.raises(ValueError):
            credentials.save_credentials(username, password)

    def test_clear(self, credentials):
        credentials.save_credentials("agent", "secret")

        credentials.clear_credentials()

        assert credentials.get_credentials() is None

    def test_environment_fallback(self, db):
        service = CredentialsService(SettingsRepository(db), fallback_username="env", fallback_password="pw")

        assert service.get_credentials() == ("env", "pw")
        assert not service.has_stored_credentials()

        service.save_credentials("stored", "pw2")
        assert service.get_credentials() == ("stored", "pw2")

    def test_validate_credentials(self, credentials):
        assert credentials.validate_credentials("anyone", "anything")

        credentials.save_credentials("agent", "secret")

        assert credentials.validate_credentials("agent", "secret")
        assert not credentials.validate_credentials("agent", "wrong")


class TestAuthService:

    def test_authenticate_with_stored_credentials(self, auth, client, credentials):
        credentials.save_credentials("agent", "secret")
        client.login.return_value = "tok"

        assert auth.authenticate() == "tok"
        client.login.assert_called_once_with("agent", "secret")

    def test_no_credentials(self, auth, client):
        with pytest.raises(AuthenticationException) as exc:
            auth.authenticate()

        assert exc.value.error_type is AuthenticationErrorType.NO_CREDENTIALS
        client.login.assert_not_called()

    @pytest.mark.parametrize("status,expected", [
        (401, AuthenticationErrorType.INVALID_CREDENTIALS),
        (403, AuthenticationErrorType.INVALID_CREDENTIALS),
        (500, AuthenticationErrorType.SERVER_ERROR),
        (503, AuthenticationErrorType.SERVER_ERROR),
        (400, AuthenticationErrorType.UNKNOWN_ERROR),
    ])
    def test_api_errors_classified(self, auth, client, status, expected):
        client.login.side_effect = ApiException("refused", status)

        with pytest.raises(AuthenticationException) as exc:
            auth.authenticate_with_credentials("agent", "secret")

        assert exc.value.error_type is expected

    def test_network_error(self, auth, client):
        client.login.side_effect = NetworkException("connection refused")

        with pytest.raises(AuthenticationException) as exc:
            auth.authenticate_with_credentials("agent", "secret")

        assert exc.value.error_type is AuthenticationErrorType.NETWORK_ERROR

    def test_missing_token(self, auth, client):
        client.login.return_value = None

        with pytest.raises(AuthenticationException) as exc:
            auth.authenticate_with_credentials("agent", "secret")

        assert exc.value.error_type is AuthenticationErrorType.INVALID_RESPONSE

    def test_logout_clears_token(self, auth, client):
        auth.logout()

        client.clear_access_token.assert_called_once()
