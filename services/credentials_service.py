# -*- coding: utf-8 -*-
"""
Service account credentials used to open sync sessions.

Stored in the local app_settings table; when nothing is stored the
API_USERNAME / API_PASSWORD environment settings are used instead.
"""

from typing import Optional, Tuple

from app.config import Config
from repositories.settings_repository import SettingsRepository
from utils.logger import get_logger

logger = get_logger(__name__)

USERNAME_KEY = "sync_username"
PASSWORD_KEY = "sync_password"


class CredentialsService:
    """has / save / get / clear for the sync credentials."""

    def __init__(self, settings: SettingsRepository,
                 fallback_username: str = None, fallback_password: str = None):
        self.settings = settings
        self.fallback_username = Config.API_USERNAME if fallback_username is None else fallback_username
        self.fallback_password = Config.API_PASSWORD if fallback_password is None else fallback_password

    def has_credentials(self) -> bool:
        return self.get_credentials() is not None

    def has_stored_credentials(self) -> bool:
        return bool(self.settings.get(USERNAME_KEY) and self.settings.get(PASSWORD_KEY))

    def save_credentials(self, username: str, password: str) -> None:
        username = (username or "").strip()
        if not username or not password:
            raise ValueError("Username and password are both required")
        self.settings.set(USERNAME_KEY, username)
        self.settings.set(PASSWORD_KEY, password)
        logger.info(f"Sync credentials saved for {username}")

    def get_stored_username(self) -> Optional[str]:
        return self.settings.get(USERNAME_KEY) or self.fallback_username or None

    def get_credentials(self) -> Optional[Tuple[str, str]]:
        """Stored pair first, then the configured fallback; None when incomplete."""
        username = self.settings.get(USERNAME_KEY)
        password = self.settings.get(PASSWORD_KEY)
        if username and password:
            return username, password
        if self.fallback_username and self.fallback_password:
            return self.fallback_username, self.fallback_password
        return None

    def validate_credentials(self, username: str, password: str) -> bool:
        """Compare against the stored pair. Nothing stored accepts anything."""
        stored = self.get_credentials()
        if stored is None:
            return True
        return (username, password) == stored

    def clear_credentials(self) -> None:
        self.settings.delete(USERNAME_KEY, PASSWORD_KEY)
        logger.info("Sync credentials cleared")
