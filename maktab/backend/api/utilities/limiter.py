# maktab/backend/api/utilities/limiter.py

from fastapi import Request
import jwt

from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config.config import settings


def get_limiter_key(request: Request) -> str:
    """
    Rate limit key: the user id from a bearer token when one decodes, else the
    client IP. Expiry is not checked here; the authorization gate does that.
    """
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer ") and settings.JWT_SECRET:
        token = auth_header.split(" ", 1)[1]
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM],
                options={"verify_exp": False}
            )
            user_id = payload.get("user_id")
            if user_id:
                return str(user_id)
        except jwt.PyJWTError:
            pass

    return get_remote_address(request)


# memory:// by default; point RATE_LIMITER_STORAGE_URL at redis:// to share limits across workers.
limiter = Limiter(key_func=get_limiter_key, storage_uri=settings.RATE_LIMITER_STORAGE_URL)
