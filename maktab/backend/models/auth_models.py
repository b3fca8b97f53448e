# maktab/backend/models/auth_models.py

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .db_models import User


class AuthErrorCode(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


class AuthResult(BaseModel):
    """
    Outcome of an auth service operation.

    Services never raise for expected failures; callers branch on ``success``
    and map ``error_code`` to a response.
    """
    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None

    user: Optional[User] = None
    token: Optional[str] = None
    require_password_change: bool = False
    otp: Optional[str] = None

    @classmethod
    def fail(cls, error_code: AuthErrorCode, error_message: str) -> "AuthResult":
        return cls(success=False, error_code=error_code, error_message=error_message)


# Internal representation of the JWT payload
class TokenData(BaseModel):
    user_id: UUID
    role: str


class TokenResult(BaseModel):
    """Either the decoded token (``data``) or the reason it was rejected."""
    data: Optional[TokenData] = None
    reason: Optional[str] = Field(None, description="Why verification failed; never shown to clients.")

    @property
    def ok(self) -> bool:
        return self.data is not None
