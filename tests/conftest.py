# -*- coding: utf-8 -*-
"""
Shared fixtures: a fresh SQLite database per test and record factories.
"""
import os
import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Run Qt headless when no display is available
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.enums import TaxpayerType
from models.parcel import Building, Parcel, ParcelOwner
from models.taxpayer import Taxpayer
from repositories.database import Database
from repositories.parcel_repository import ParcelRepository
from repositories.taxpayer_repository import TaxpayerRepository
from services.api_client import CensusApiClient
from services.auth_service import AuthService


@pytest.fixture
def db(tmp_path):
    """Initialized database in a temporary file."""
    database = Database(tmp_path / "census.db")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def photos_dir(tmp_path):
    path = tmp_path / "photos"
    path.mkdir()
    return path


@pytest.fixture
def taxpayer_repo(db, photos_dir):
    return TaxpayerRepository(db, photos_dir)


@pytest.fixture
def parcel_repo(db):
    return ParcelRepository(db)


@pytest.fixture
def make_taxpayer(taxpayer_repo):
    """Create taxpayers with strictly increasing created_at."""
    base = datetime(2024, 3, 1, 8, 0, 0)
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = dict(
            taxpayer_type=TaxpayerType.PHYSIQUE,
            last_name=f"Mukendi {counter['n']}",
            first_name="Jean",
            phone1=f"+2438100000{counter['n']:02d}",
            commune_id=4,
            activity_id=1,
            created_at=base + timedelta(minutes=counter["n"]),
        )
        values.update(overrides)
        return taxpayer_repo.create(Taxpayer(**values))

    return _make


@pytest.fixture
def make_parcel(parcel_repo):
    base = datetime(2024, 3, 1, 8, 0, 0)
    counter = {"n": 0}

    def _make(buildings: int = 1, with_owner: bool = True, **overrides):
        counter["n"] += 1
        values = dict(
            parcel_code=f"P-{counter['n']:04d}",
            commune_id=4,
            area_m2=250.0,
            created_at=base + timedelta(minutes=counter["n"]),
        )
        values.update(overrides)
        parcel = Parcel(**values)
        parcel.buildings = [Building(floor_count=i + 1) for i in range(buildings)]
        if with_owner:
            parcel.owner = ParcelOwner(name="Kabila Trading", nif="A1234567")
        return parcel_repo.create(parcel)

    return _make


@pytest.fixture
def api_client():
    """API client with every network call mocked."""
    client = MagicMock(spec=CensusApiClient)
    client.post_batch.return_value = "OK"
    return client


@pytest.fixture
def auth_service():
    auth = MagicMock(spec=AuthService)
    auth.authenticate.return_value = "token-123"
    return auth
