"""Unit tests for user_service module."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from tasktracker.core.errors import AuthenticationError, InvalidRequestError
from tasktracker.domain.create_models import UserCreate
from tasktracker.services import user_service


@pytest.fixture
def alice_signup() -> UserCreate:
    return UserCreate(name="Alice", email="Alice@Example.com", password="password123")


@pytest.mark.unit
class TestPasswordHashing:
    """Tests for hash_password and verify_password."""

    def test_round_trip(self):
        encoded = user_service.hash_password("hunter22", iterations=1000)

        assert user_service.verify_password("hunter22", encoded)
        assert not user_service.verify_password("hunter23", encoded)

    def test_format(self):
        encoded = user_service.hash_password("hunter22", iterations=1000)

        algorithm, iterations, salt, digest = encoded.split("$")
        assert algorithm == "pbkdf2_sha256"
        assert iterations == "1000"
        assert salt
        assert digest

    def test_salted(self):
        assert user_service.hash_password("same", iterations=1000) != user_service.hash_password(
            "same", iterations=1000
        )

    def test_plaintext_never_stored(self):
        assert "hunter22" not in user_service.hash_password("hunter22", iterations=1000)

    @pytest.mark.parametrize("encoded", ["", "garbage", "md5$1$abc$def", "pbkdf2_sha256$notanumber$abc$def"])
    def test_malformed_hash_rejected(self, encoded):
        assert not user_service.verify_password("anything", encoded)


@pytest.mark.unit
class TestRegisterUser:
    """Tests for register_user function."""

    async def test_register_success(self, patched_db, alice_signup):
        user = await user_service.register_user(alice_signup)

        assert user.name == "Alice"
        assert user.email == "alice@example.com"
        assert user.id

    async def test_created_keeps_microseconds_on_exact_second(self, patched_db, alice_signup, monkeypatch):
        clock = MagicMock()
        clock.now.return_value = datetime(2026, 1, 1, tzinfo=UTC)
        monkeypatch.setattr("tasktracker.services.user_service.datetime", clock)

        user = await user_service.register_user(alice_signup)

        assert user.created == "2026-01-01T00:00:00.000000Z"

    async def test_password_hashed_in_storage(self, patched_db, alice_signup):
        user = await user_service.register_user(alice_signup)

        stored = await patched_db.get_record("users", user.id)
        assert stored["password_hash"].startswith("pbkdf2_sha256$")
        assert "password123" not in stored["password_hash"]
        assert "password_hash" not in user.to_api()

    async def test_duplicate_email_rejected(self, patched_db, alice_signup):
        await user_service.register_user(alice_signup)

        with pytest.raises(InvalidRequestError, match="Email already registered"):
            await user_service.register_user(
                UserCreate(name="Other Alice", email="ALICE@example.com", password="password456")
            )


@pytest.mark.unit
class TestAuthenticate:
    """Tests for authenticate function."""

    async def test_valid_credentials(self, patched_db, alice_signup):
        registered = await user_service.register_user(alice_signup)

        user = await user_service.authenticate("alice@example.com", "password123")

        assert user.id == registered.id

    async def test_email_case_insensitive(self, patched_db, alice_signup):
        await user_service.register_user(alice_signup)

        user = await user_service.authenticate("  ALICE@example.COM ", "password123")

        assert user.name == "Alice"

    async def test_wrong_password(self, patched_db, alice_signup):
        await user_service.register_user(alice_signup)

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await user_service.authenticate("alice@example.com", "wrong-password")

    async def test_unknown_email_fails_the_same_way(self, patched_db):
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await user_service.authenticate("nobody@example.com", "password123")


@pytest.mark.unit
class TestGetUser:
    async def test_existing(self, patched_db, alice_signup):
        registered = await user_service.register_user(alice_signup)

        assert await user_service.get_user(registered.id) == registered

    async def test_missing_returns_none(self, patched_db):
        assert await user_service.get_user("9999") is None
