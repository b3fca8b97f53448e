from fastapi import APIRouter, Depends
from typing import List
from uuid import UUID

from .schemas.user import RegisterRequest, RegisterResponse, UserResponse, OtpResponse
from ..models.auth_models import TokenData
from ..db.db_client import AsyncPostgresClient
from ..services.auth_service import AuthService
from .auth import require_admin, raise_for_result
from .dependencies import get_auth_service, get_db_client

router = APIRouter(prefix="/users", tags=["Users (admin)"])


@router.post("/register", response_model=RegisterResponse, summary="Create an account with a temporary password")
async def register_user(
    register_request: RegisterRequest,
    admin: TokenData = Depends(require_admin),
    service: AuthService = Depends(get_auth_service)
):
    result = await service.register_user(
        actor=admin,
        username=register_request.username.strip(),
        role=register_request.role,
        password=register_request.password,
        first_name=register_request.first_name,
        last_name=register_request.last_name,
        school=register_request.school,
        grade=register_request.grade,
        grade_section=register_request.grade_section,
    )
    raise_for_result(result)
    return RegisterResponse(user=UserResponse.model_validate(result.user), otp=result.otp)


@router.get("", response_model=List[UserResponse], summary="List every account, newest first")
async def list_users(
    admin: TokenData = Depends(require_admin),
    db_client: AsyncPostgresClient = Depends(get_db_client)
):
    return [UserResponse.model_validate(user) for user in await db_client.list_users()]


@router.post("/{user_id}/reset-password", response_model=OtpResponse, summary="Issue a new one-time password")
async def reset_password(
    user_id: UUID,
    admin: TokenData = Depends(require_admin),
    service: AuthService = Depends(get_auth_service)
):
    result = await service.reset_password(actor=admin, user_id=user_id)
    raise_for_result(result)
    return OtpResponse(otp=result.otp)
