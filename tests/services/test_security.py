import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from maktab.backend.config.config import settings, Config, ConfigurationError
from maktab.backend.services.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
    generate_otp,
)


def test_hash_is_salted_and_verifiable():
    first = hash_password("s3cret", rounds=4)
    second = hash_password("s3cret", rounds=4)

    assert first != second
    assert first.startswith("$2")
    assert verify_password("s3cret", first)
    assert not verify_password("S3cret", first)


def test_malformed_hash_never_verifies():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_cost_factor_comes_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 5)

    assert hash_password("x").split("$")[2] == "05"


def test_token_round_trip_carries_id_and_role():
    user_id = uuid.uuid4()
    result = decode_access_token(create_access_token(user_id, "teacher"))

    assert result.ok
    assert result.data.user_id == user_id
    assert result.data.role == "teacher"


def test_token_lifetime_is_seven_days():
    token = create_access_token(uuid.uuid4(), "student")
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])

    lifetime = datetime.fromtimestamp(payload["exp"], timezone.utc) - datetime.fromtimestamp(payload["iat"], timezone.utc)
    assert lifetime == timedelta(days=7)


def test_expired_token_is_rejected():
    token = create_access_token(uuid.uuid4(), "admin", expires_delta=timedelta(seconds=-10))

    result = decode_access_token(token)

    assert not result.ok
    assert result.reason == "expired"


def test_bad_signature_is_rejected():
    token = jwt.encode(
        {"user_id": str(uuid.uuid4()), "role": "admin", "exp": datetime.now(timezone.utc) + timedelta(days=1)},
        "some-other-secret-of-sufficient-length",
        algorithm="HS256",
    )

    assert not decode_access_token(token).ok


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_rejected(token):
    assert not decode_access_token(token).ok


def test_token_without_expiry_is_rejected():
    token = jwt.encode({"user_id": str(uuid.uuid4()), "role": "admin"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    assert not decode_access_token(token).ok


def test_token_with_bad_payload_shape_is_rejected():
    token = jwt.encode(
        {"user_id": "not-a-uuid", "role": "admin", "exp": datetime.now(timezone.utc) + timedelta(days=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )

    assert not decode_access_token(token).ok


def test_otp_is_random_alphanumeric():
    otps = {generate_otp() for _ in range(20)}

    assert len(otps) == 20
    assert all(len(otp) == 8 and otp.isalnum() for otp in otps)


def test_missing_secret_is_a_configuration_error(monkeypatch):
    config = Config()
    monkeypatch.setattr(config, "JWT_SECRET", None)

    with pytest.raises(ConfigurationError, match="JWT_SECRET"):
        config.validate()
