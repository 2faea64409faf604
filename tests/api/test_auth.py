"""
Tests for password hashing.
"""

import pytest

from api.auth import PasswordHasher


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


def test_hash_is_not_plaintext(hasher):
    hashed = hasher.hash_password("s3cret")
    assert hashed != "s3cret"
    assert hashed.startswith("$2b$04$")


def test_hash_is_salted(hasher):
    assert hasher.hash_password("s3cret") != hasher.hash_password("s3cret")


def test_verify_matching_password(hasher):
    hashed = hasher.hash_password("s3cret")
    assert hasher.verify_password("s3cret", hashed) is True


def test_verify_wrong_password(hasher):
    hashed = hasher.hash_password("s3cret")
    assert hasher.verify_password("S3cret", hashed) is False


def test_verify_malformed_hash(hasher):
    assert hasher.verify_password("s3cret", "s3cret") is False


def test_long_password_uses_first_72_bytes(hasher):
    password = "x" * 100
    hashed = hasher.hash_password(password)
    assert hasher.verify_password(password, hashed) is True
    assert hasher.verify_password("x" * 72, hashed) is True


def test_default_rounds_from_config():
    from api.config import config
    assert PasswordHasher().rounds == config.bcrypt_rounds


@pytest.mark.asyncio
async def test_async_round_trip(hasher):
    hashed = await hasher.hash_password_async("s3cret")
    assert await hasher.verify_password_async("s3cret", hashed) is True
    assert await hasher.verify_password_async("wrong", hashed) is False
