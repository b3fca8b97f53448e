import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from pydantic import ValidationError

from ..config.config import settings
from ..models.auth_models import TokenData, TokenResult

logger = logging.getLogger(__name__)

OTP_ALPHABET = string.ascii_letters + string.digits
OTP_LENGTH = 8


# --- Passwords ---

def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Salted bcrypt hash of the password."""
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed; treating as a mismatch.")
        return False


def generate_otp(length: int = OTP_LENGTH) -> str:
    """One-time password handed out by admins on registration and reset."""
    return "".join(secrets.choice(OTP_ALPHABET) for _ in range(length))


# --- Tokens ---

def create_access_token(user_id, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signs a token carrying the user id and role, valid for TOKEN_EXPIRE_DAYS by default."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else timedelta(days=settings.TOKEN_EXPIRE_DAYS))
    to_encode = {"user_id": str(user_id), "role": role, "iat": now, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenResult:
    """
    Verifies signature and expiry and validates the payload shape.

    Any failure (malformed, expired, bad signature, missing claims) comes back
    as a rejected TokenResult; there is no partial pass.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
        return TokenResult(data=TokenData.model_validate(payload))
    except jwt.ExpiredSignatureError:
        return TokenResult(reason="expired")
    except (jwt.PyJWTError, ValidationError) as e:
        return TokenResult(reason=f"invalid: {e.__class__.__name__}")
