"""Tests for the create_user management script."""

import importlib.util
from pathlib import Path

import pytest

from stockroom.core.security import verify_password
from stockroom.models.user import User

SCRIPT_PATH = Path(__file__).resolve().parent.parent / "scripts" / "create_user.py"


@pytest.fixture(scope="module")
def create_user_script():
    spec = importlib.util.spec_from_file_location("create_user_script", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestCreateUser:
    def test_creates_active_user(self, create_user_script, db_session):
        user = create_user_script.create_user(db_session, "  manager ", "s3cret!")
        assert user.username == "manager"
        assert user.is_active is True
        assert verify_password("s3cret!", user.password_hash)
        assert db_session.query(User).count() == 1

    def test_duplicate_username(self, create_user_script, db_session, test_user):
        with pytest.raises(ValueError, match="already exists"):
            create_user_script.create_user(db_session, "tester", "another1")

    @pytest.mark.parametrize("username, password", [("", "longenough"), ("someone", "short")])
    def test_rejects_bad_input(self, create_user_script, db_session, username, password):
        with pytest.raises(ValueError):
            create_user_script.create_user(db_session, username, password)
