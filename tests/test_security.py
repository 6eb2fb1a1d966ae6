from datetime import timedelta

import jwt
import pytest

from delivery_api.core.config import Settings
from delivery_api.core.security import (
    PASSWORD_POLICY_MESSAGE,
    PasswordHasher,
    TokenClaims,
    create_access_token,
    decode_access_token,
    generate_reset_token,
    validate_password_strength,
)
from tests.factories import make_settings


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


def test_hash_is_salted_and_verifies(hasher):
    first = hasher.hash("Passw0rd")
    second = hasher.hash("Passw0rd")

    assert first != second
    assert first.startswith("$2b$04$")
    assert hasher.verify("Passw0rd", first)
    assert hasher.verify("Passw0rd", second)
    assert not hasher.verify("Passw0rd!", first)


def test_verify_rejects_unusable_hashes(hasher):
    assert not hasher.verify("Passw0rd", None)
    assert not hasher.verify("Passw0rd", "")
    assert not hasher.verify("Passw0rd", "not-a-bcrypt-hash")
    assert not hasher.verify("", hasher.hash("Passw0rd"))


def test_default_cost_is_twelve():
    assert Settings.model_fields["BCRYPT_ROUNDS"].default == 12
    assert PasswordHasher().rounds == 12


@pytest.mark.parametrize("password", ["Passw0rd", "abcdefg1", "1234567a", "NewPass1"])
def test_password_policy_accepts(password):
    assert validate_password_strength(password) == password


@pytest.mark.parametrize("password", ["Pass0", "abcdefgh", "12345678", ""])
def test_password_policy_rejects(password):
    with pytest.raises(ValueError, match=PASSWORD_POLICY_MESSAGE):
        validate_password_strength(password)


def test_password_policy_rejects_over_bcrypt_limit():
    with pytest.raises(ValueError, match="72 bytes"):
        validate_password_strength("a1" * 40)


def test_reset_token_is_32_random_bytes_hex():
    token = generate_reset_token()
    assert len(token) == 64
    int(token, 16)
    assert generate_reset_token() != token


def test_access_token_round_trip():
    settings = make_settings()
    claims = TokenClaims(id="65f0c0ffee0000000000abcd", email="a@x.com", role="agent")

    token = create_access_token(claims, settings)
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])

    assert decode_access_token(token, settings) == claims
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_expired_token_is_rejected():
    settings = make_settings()
    claims = TokenClaims(id="1", email="a@x.com", role="customer")
    token = create_access_token(claims, settings, expires_delta=timedelta(seconds=-5))

    assert decode_access_token(token, settings) is None


def test_token_signed_with_other_secret_is_rejected():
    claims = TokenClaims(id="1", email="a@x.com", role="admin")
    forged = create_access_token(claims, make_settings(SECRET_KEY="someone-elses-secret-key-value"))

    assert decode_access_token(forged, make_settings()) is None


def test_garbage_and_incomplete_tokens_are_rejected():
    settings = make_settings()
    no_role = jwt.encode({"sub": "1", "email": "a@x.com", "exp": 4102444800}, settings.SECRET_KEY, algorithm="HS256")

    assert decode_access_token("not.a.jwt", settings) is None
    assert decode_access_token(no_role, settings) is None


def test_dummy_hash_is_a_cached_hash_at_the_same_cost():
    hasher = PasswordHasher(rounds=4)

    assert hasher.dummy_hash().startswith("$2b$04$")
    assert hasher.dummy_hash() == PasswordHasher(rounds=4).dummy_hash()
    assert not hasher.verify("Passw0rd", hasher.dummy_hash())
