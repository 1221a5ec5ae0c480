"""Tests for password hashing and the session token codec."""

from datetime import timedelta

import jwt
import pytest

from shipline.core.config import settings
from shipline.core.errors import InvalidToken
from shipline.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Tests for hash_password / verify_password."""

    @pytest.mark.unit
    def test_hash_verifies_against_same_password(self):
        stored = hash_password("Secret123!")

        assert verify_password("Secret123!", stored)
        assert not verify_password("secret123!", stored)

    @pytest.mark.unit
    def test_two_hashes_of_one_password_differ(self):
        """Every hash carries its own salt."""
        assert hash_password("Secret123!") != hash_password("Secret123!")

    @pytest.mark.unit
    def test_hash_never_contains_plaintext(self):
        assert "Secret123!" not in hash_password("Secret123!")

    @pytest.mark.unit
    def test_malformed_stored_hash_never_verifies(self):
        assert verify_password("Secret123!", "not-a-real-hash") is False


class TestAccessToken:
    """Tests for create_access_token / decode_access_token."""

    @pytest.mark.unit
    def test_claims_survive_encoding(self):
        token = create_access_token({"sub": "alice", "role": "user"})

        payload = decode_access_token(token)

        assert payload["sub"] == "alice"
        assert payload["role"] == "user"
        assert payload["exp"] - payload["iat"] == settings.access_token_expire_minutes * 60

    @pytest.mark.unit
    def test_expired_token_is_rejected(self):
        token = create_access_token({"sub": "alice"}, expires_delta=timedelta(seconds=-5))

        with pytest.raises(InvalidToken):
            decode_access_token(token)

    @pytest.mark.unit
    def test_tampered_token_is_rejected(self):
        token = create_access_token({"sub": "alice"})
        header, payload, signature = token.split(".")
        forged = ".".join([header, payload, signature[::-1]])

        with pytest.raises(InvalidToken):
            decode_access_token(forged)

    @pytest.mark.unit
    def test_token_signed_with_other_key_is_rejected(self):
        token = jwt.encode({"sub": "alice", "exp": 9999999999}, "x" * 40, algorithm="HS256")

        with pytest.raises(InvalidToken):
            decode_access_token(token)

    @pytest.mark.unit
    def test_token_without_subject_is_rejected(self):
        token = create_access_token({"role": "admin"})

        with pytest.raises(InvalidToken):
            decode_access_token(token)

    @pytest.mark.unit
    def test_garbage_is_rejected(self):
        with pytest.raises(InvalidToken):
            decode_access_token("definitely.not.ajwt")
