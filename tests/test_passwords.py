"""Tests for password hashing and verification."""
import pytest

from accounts import PasswordHasher
from core.errors import EmptyInputError, InternalError, ValidationError


class TestHash:
    @pytest.mark.parametrize("password", ["Secret123!", "p", "pässwörd-ünïcode", " spaced out ", "x" * 200])
    def test_round_trip(self, hasher, password):
        hashed = hasher.hash(password)
        assert hasher.verify(password, hashed)

    def test_hash_does_not_contain_plaintext(self, hasher):
        assert "Secret123!" not in hasher.hash("Secret123!")

    def test_salted(self, hasher):
        first = hasher.hash("Secret123!")
        second = hasher.hash("Secret123!")
        assert first != second
        assert hasher.verify("Secret123!", first)
        assert hasher.verify("Secret123!", second)

    def test_embeds_method(self, hasher):
        assert hasher.hash("Secret123!").startswith("pbkdf2:sha256:1000$")

    @pytest.mark.parametrize("password", ["", "   ", "\t\n", None])
    def test_blank_rejected(self, hasher, password):
        with pytest.raises(EmptyInputError):
            hasher.hash(password)

    def test_empty_input_is_validation_error(self, hasher):
        with pytest.raises(ValidationError):
            hasher.hash("")

    def test_unknown_method_is_internal_error(self):
        broken = PasswordHasher(method="not-a-real-method")
        with pytest.raises(InternalError) as exc_info:
            broken.hash("Secret123!")
        assert "Secret123!" not in str(exc_info.value)

    def test_default_work_factor(self):
        assert PasswordHasher().method == "pbkdf2:sha256:600000"


class TestVerify:
    def test_wrong_password(self, hasher):
        hashed = hasher.hash("Secret123!")
        assert hasher.verify("secret123!", hashed) is False
        assert hasher.verify("Secret123", hashed) is False

    @pytest.mark.parametrize("password", ["", "   ", None])
    def test_blank_password_is_false(self, hasher, password):
        assert hasher.verify(password, hasher.hash("Secret123!")) is False

    @pytest.mark.parametrize("password_hash", ["", "   ", None])
    def test_blank_hash_is_false(self, hasher, password_hash):
        assert hasher.verify("Secret123!", password_hash) is False

    @pytest.mark.parametrize("password_hash", ["garbage", "pbkdf2:sha256$nosalt", "$$$"])
    def test_unparseable_hash_is_false(self, hasher, password_hash):
        assert hasher.verify("Secret123!", password_hash) is False

    def test_verifies_hash_from_other_work_factor(self, hasher):
        stronger = PasswordHasher(method="pbkdf2:sha256:2000")
        assert hasher.verify("Secret123!", stronger.hash("Secret123!"))
