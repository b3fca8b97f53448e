import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Request, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .schemas.user import (
    LoginRequest,
    LoginResponse,
    SeedAdminRequest,
    ChangePasswordRequest,
    SuccessResponse,
    UserResponse,
)
from ..models.auth_models import AuthErrorCode, AuthResult, TokenData
from ..services.auth_service import AuthService
from ..services.security import decode_access_token
from ..config.config import settings
from .dependencies import get_auth_service
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)
bearer_scheme = HTTPBearer(auto_error=False)

STATUS_BY_ERROR = {
    AuthErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    AuthErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    AuthErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def raise_for_result(result: AuthResult):
    """Turns a failed AuthResult into the matching HTTP error."""
    if not result.success:
        raise HTTPException(status_code=STATUS_BY_ERROR[result.error_code], detail=result.error_message)


# --- Authorization gate ---

def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenData:
    """
    Validates the bearer token of a protected route.

    No token, a malformed token, a bad signature or an expired token all end
    in 401. Tokens are self-contained; nothing is looked up server-side.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized()

    result = decode_access_token(credentials.credentials)
    if not result.ok:
        logger.warning(f"Token validation failed: {result.reason}")
        raise _unauthorized()
    return result.data


async def require_admin(current_user: TokenData = Depends(get_current_user)) -> TokenData:
    """Runs after a successful token check; a valid non-admin token gets 403."""
    if current_user.role != "admin":
        logger.warning(f"User '{current_user.user_id}' ({current_user.role}) tried to reach an admin route.")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user


# --- API endpoints ---

@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    login_request: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Username + password + role login for web and mobile clients."""
    result = await service.login(login_request.username, login_request.password, login_request.role)
    raise_for_result(result)
    return LoginResponse(
        user=UserResponse.model_validate(result.user),
        token=result.token,
        require_password_change=result.require_password_change,
    )


@router.post("/change-password", response_model=SuccessResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def change_password(
    request: Request,
    change_request: ChangePasswordRequest,
    current_user: TokenData = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    result = await service.change_password(
        current_user.user_id, change_request.current_password, change_request.new_password
    )
    raise_for_result(result)
    return SuccessResponse(success=True)


@router.post("/seed-admin", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def seed_admin(
    request: Request,
    seed_request: SeedAdminRequest,
    x_admin_secret: Optional[str] = Header(None),
    service: AuthService = Depends(get_auth_service)
):
    """Creates the first admin. Disabled unless ADMIN_SEED_SECRET is configured."""
    result = await service.seed_admin(
        provided_secret=x_admin_secret,
        expected_secret=settings.ADMIN_SEED_SECRET,
        username=seed_request.username,
        password=seed_request.password,
        first_name=seed_request.first_name,
        last_name=seed_request.last_name,
    )
    raise_for_result(result)
    return LoginResponse(
        user=UserResponse.model_validate(result.user),
        token=result.token,
        require_password_change=False,
    )
