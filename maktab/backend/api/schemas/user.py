# maktab/backend/api/schemas/user.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from uuid import UUID


class CamelModel(BaseModel):
    """JSON bodies use camelCase in both directions."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""
    role: str = ""


class SeedAdminRequest(CamelModel):
    username: str = ""
    password: str = ""
    first_name: str = ""
    last_name: str = ""


class ChangePasswordRequest(CamelModel):
    current_password: str = ""
    new_password: str = ""


class RegisterRequest(CamelModel):
    username: str = ""
    password: Optional[str] = None
    role: str = ""
    first_name: str = ""
    last_name: str = ""
    school: Optional[str] = ""
    grade: Optional[str] = None
    grade_section: Optional[str] = None


class UserResponse(CamelModel):
    id: UUID
    username: str
    role: str
    first_name: str = ""
    last_name: str = ""
    school: Optional[str] = ""
    grade: Optional[str] = None
    grade_section: Optional[str] = None
    is_temporary_password: bool


class LoginResponse(CamelModel):
    user: UserResponse
    token: str
    require_password_change: bool


class RegisterResponse(CamelModel):
    user: UserResponse
    otp: Optional[str] = None


class OtpResponse(CamelModel):
    otp: str


class SuccessResponse(CamelModel):
    success: bool = True
