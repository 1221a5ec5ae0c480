"""Tests for the bin/seed.py bootstrap script."""

import importlib.util
from pathlib import Path

import pytest

from shipline.core.config import settings
from shipline.core.security import verify_password
from shipline.models.user import Role, User
from shipline.models.vessel import Vessel

_SEED_PATH = Path(__file__).resolve().parent.parent / "bin" / "seed.py"


@pytest.fixture
def seed():
    """bin/ is not a package; load the script as a module."""
    spec = importlib.util.spec_from_file_location("shipline_seed", _SEED_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestSeed:
    """Tests for seed_admin / seed_vessels."""

    @pytest.mark.unit
    def test_admin_created_once(self, seed, db, monkeypatch):
        monkeypatch.setattr(settings, "first_admin_user_id", "harbourmaster")
        monkeypatch.setattr(settings, "first_admin_password", "Anchor42!")

        assert seed.seed_admin(db) is True
        assert seed.seed_admin(db) is False

        admin = db.query(User).filter(User.user_id == "harbourmaster").one()
        assert admin.role_enum is Role.ADMIN
        assert verify_password("Anchor42!", admin.password_hash)

    @pytest.mark.unit
    def test_admin_skipped_without_credentials(self, seed, db, monkeypatch):
        monkeypatch.setattr(settings, "first_admin_password", "")

        assert seed.seed_admin(db) is False
        assert db.query(User).count() == 0

    @pytest.mark.unit
    def test_sample_vessels_skip_duplicates(self, seed, db):
        assert seed.seed_vessels(db) == len(seed.SAMPLE_VESSELS)
        assert seed.seed_vessels(db) == 0
        assert db.query(Vessel).count() == len(seed.SAMPLE_VESSELS)
