# -*- coding: utf-8 -*-


from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import os

from dotenv import load_dotenv

# ============================================================================
# Load .env file for local environment configuration
# ============================================================================
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


# ============================================================================
# Read settings from environment variables (from .env or system)
# ============================================================================
# API Settings
_API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080")
_API_TIMEOUT = int(os.getenv("API_TIMEOUT", "30"))
_API_VERIFY_SSL = _env_bool("API_VERIFY_SSL", "false")
_API_USERNAME = os.getenv("API_USERNAME", "")
_API_PASSWORD = os.getenv("API_PASSWORD", "")

# Export Settings
_EXPORT_TIMEOUT = int(os.getenv("EXPORT_TIMEOUT", "60"))
_EXPORT_CHUNK_SIZE = int(os.getenv("EXPORT_CHUNK_SIZE", "20"))
_EXPORT_MAX_ITERATIONS = _env_optional_int("EXPORT_MAX_ITERATIONS")
_EXPORT_STOP_ON_FAILURE = _env_bool("EXPORT_STOP_ON_FAILURE", "false")

# Local storage
_DB_PATH = os.getenv("CENSUS_DB_PATH")
_PHOTOS_DIR = os.getenv("PHOTOS_DIR")


@dataclass
class Config:
    """Application configuration."""

    # Application Info
    APP_NAME: str = "Recensement Fiscal"
    VERSION: str = "1.0.0"

    # HTTP API Backend Settings
    # Reads from .env file (API_BASE_URL, API_TIMEOUT, ...)
    API_BASE_URL: str = _API_BASE_URL
    API_TIMEOUT: int = _API_TIMEOUT
    API_VERIFY_SSL: bool = _API_VERIFY_SSL
    API_USERNAME: str = _API_USERNAME  # Fallback when no credentials are stored locally
    API_PASSWORD: str = _API_PASSWORD

    # Endpoints
    LOGIN_ENDPOINT: str = "/auth/login"
    TAXPAYER_EXPORT_ENDPOINT: str = "/contribuables/batch"
    PARCEL_EXPORT_ENDPOINT: str = "/parcelles/batch"
    REFERENCE_ENDPOINT: str = "/reftypes/all"

    # Export
    EXPORT_TIMEOUT: int = _EXPORT_TIMEOUT  # seconds, per chunk transfer
    EXPORT_CHUNK_SIZE: int = _EXPORT_CHUNK_SIZE
    EXPORT_MAX_ITERATIONS: Optional[int] = _EXPORT_MAX_ITERATIONS
    EXPORT_STOP_ON_FAILURE: bool = _EXPORT_STOP_ON_FAILURE

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    PHOTOS_DIR: Path = Path(_PHOTOS_DIR) if _PHOTOS_DIR else DATA_DIR / "photos"

    # Database Configuration (SQLite on device)
    DB_NAME: str = "app_database.db"
    DB_PATH: Path = Path(_DB_PATH) if _DB_PATH else DATA_DIR / DB_NAME

    # Logging
    LOG_FILE: str = "app.log"
    LOG_PATH: Path = LOGS_DIR / LOG_FILE
    LOG_MAX_BYTES: int = 5 * 1024 * 1024  # 5MB
    LOG_BACKUP_COUNT: int = 3


# Entity kinds that can be exported
class ExportKinds:
    TAXPAYERS = "taxpayers"
    PARCELS = "parcels"

    ALL = (TAXPAYERS, PARCELS)
