# -*- coding: utf-8 -*-
"""
Authentication service.

Turns the stored service credentials into a session token for the
API client. Every failure surfaces as an AuthenticationException with
a classified error type.
"""

from typing import Optional

from services.api_client import CensusApiClient
from services.credentials_service import CredentialsService
from services.exceptions import (
    ApiException, AuthenticationErrorType, AuthenticationException, NetworkException,
)
from utils.logger import get_logger

logger = get_logger(__name__)


class AuthService:
    """Service for backend authentication."""

    def __init__(self, api_client: CensusApiClient, credentials: CredentialsService):
        self.api_client = api_client
        self.credentials = credentials

    def authenticate(self) -> str:
        """
        Log in with the stored credentials.

        Returns:
            The session token, already set on the API client

        Raises:
            AuthenticationException
        """
        stored = self.credentials.get_credentials()
        if stored is None:
            raise AuthenticationException(
                "Aucun identifiant enregistré. Configurez les identifiants de synchronisation.",
                AuthenticationErrorType.NO_CREDENTIALS,
            )
        username, password = stored
        return self.authenticate_with_credentials(username, password)

    def authenticate_with_credentials(self, username: str, password: str) -> str:
        """Log in with explicit credentials (e.g. to test them before saving)."""
        try:
            token: Optional[str] = self.api_client.login(username, password)
        except ApiException as e:
            raise self._classify(e) from e
        except NetworkException as e:
            logger.error(f"Login failed, server unreachable: {e}")
            raise AuthenticationException(
                f"Impossible de joindre le serveur: {e.message}",
                AuthenticationErrorType.NETWORK_ERROR,
            ) from e

        if not token:
            raise AuthenticationException(
                "Jeton absent de la réponse du serveur",
                AuthenticationErrorType.INVALID_RESPONSE,
            )
        return token

    @staticmethod
    def _classify(error: ApiException) -> AuthenticationException:
        status = error.status_code or 0
        if error.is_auth_error:
            logger.warning(f"Login refused ({status})")
            return AuthenticationException(
                "Identifiants invalides",
                AuthenticationErrorType.INVALID_CREDENTIALS,
            )
        if status >= 500:
            logger.error(f"Login failed, server error ({status})")
            return AuthenticationException(
                f"Erreur serveur ({status}). Réessayez plus tard.",
                AuthenticationErrorType.SERVER_ERROR,
            )
        logger.error(f"Login failed ({status}): {error.message}")
        return AuthenticationException(
            f"Échec de l'authentification ({status}): {error.message}",
            AuthenticationErrorType.UNKNOWN_ERROR,
        )

    def logout(self):
        self.api_client.clear_access_token()
