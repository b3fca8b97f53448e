# maktab/client/session.py
import logging
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .dispatcher import ApiClient, ApiResult

logger = logging.getLogger(__name__)

LANGUAGES = ("ru", "uz")

DEFAULT_ROUTES = {
    "student": "student.dashboard",
    "teacher": "teacher.dashboard",
    "admin": "admin.dashboard",
}

ERROR_EMPTY_FIELDS = "Fill in all fields"
ERROR_PASSWORD_MISMATCH = "Passwords do not match"
ERROR_NOT_LOGGED_IN = "Not logged in"
ERROR_PASSWORD_CHANGE_REQUIRED = "Password change required"


def default_route_for_role(role: Optional[str]) -> str:
    return DEFAULT_ROUTES.get(role or "", DEFAULT_ROUTES["student"])


class SessionUser(BaseModel):
    """The ``user`` object returned by the login endpoint."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    username: str
    role: str
    first_name: str = ""
    last_name: str = ""
    school: Optional[str] = ""
    grade: Optional[str] = None
    grade_section: Optional[str] = None
    is_temporary_password: bool = False


class SessionStatus(str, Enum):
    LOGGED_OUT = "logged_out"
    PENDING_PASSWORD_CHANGE = "pending_password_change"
    ACTIVE = "active"


class SessionState(BaseModel):
    token: Optional[str] = None
    user: Optional[SessionUser] = None
    require_password_change: bool = False
    active_route: Optional[str] = None
    language: str = "ru"

    @property
    def status(self) -> SessionStatus:
        if not self.token or self.user is None:
            return SessionStatus.LOGGED_OUT
        if self.require_password_change:
            return SessionStatus.PENDING_PASSWORD_CHANGE
        return SessionStatus.ACTIVE


class SessionController:
    """
    Client-side login state.

    LOGGED_OUT -> login -> PENDING_PASSWORD_CHANGE (server flagged it) or ACTIVE
    PENDING_PASSWORD_CHANGE -> change_password -> ACTIVE
    any -> logout -> LOGGED_OUT

    While a password change is pending ``request`` refuses every call, so the
    only authenticated action left is ``change_password``.
    """

    def __init__(self, api_client: ApiClient, language: str = "ru"):
        self.api_client = api_client
        self.state = SessionState(language=language)

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    async def login(self, username: str, password: str, role: str) -> ApiResult:
        username = (username or "").strip()
        if not username or not (password or "").strip():
            return ApiResult.fail(ERROR_EMPTY_FIELDS)

        result = await self.api_client.request(
            "/api/auth/login",
            method="POST",
            json={"username": username, "password": password, "role": role},
        )
        if not result.success:
            logger.info(f"Login for '{username}' failed: {result.error}")
            return result

        data: Dict[str, Any] = result.data if isinstance(result.data, dict) else {}
        if not data.get("token") or not isinstance(data.get("user"), dict):
            return ApiResult.fail("Unexpected login response")

        user = SessionUser.model_validate(data["user"])
        # Swap in a whole new state so no half-populated session is ever visible.
        self.state = SessionState(
            token=data["token"],
            user=user,
            require_password_change=bool(data.get("requirePasswordChange") or user.is_temporary_password),
            active_route=default_route_for_role(user.role),
            language=self.state.language,
        )
        return result

    async def change_password(self, current_password: str, new_password: str, confirm_password: str) -> ApiResult:
        """On any failure the session is left exactly as it was."""
        if self.status is SessionStatus.LOGGED_OUT:
            return ApiResult.fail(ERROR_NOT_LOGGED_IN)
        if not current_password.strip() or not new_password.strip() or not confirm_password.strip():
            return ApiResult.fail(ERROR_EMPTY_FIELDS)
        if new_password != confirm_password:
            return ApiResult.fail(ERROR_PASSWORD_MISMATCH)

        result = await self.api_client.authorized_request(
            "/api/auth/change-password",
            self.state.token,
            method="POST",
            json={"currentPassword": current_password, "newPassword": new_password},
        )
        if result.success:
            self.state = self.state.model_copy(update={"require_password_change": False})
        return result

    def logout(self):
        """Forgets token, user, flag and route. The language preference stays."""
        self.state = SessionState(language=self.state.language)

    async def request(self, path: str, method: str = "GET", **options) -> ApiResult:
        """Authenticated call for everything except the password change itself."""
        if self.status is SessionStatus.LOGGED_OUT:
            return ApiResult.fail(ERROR_NOT_LOGGED_IN)
        if self.status is SessionStatus.PENDING_PASSWORD_CHANGE:
            return ApiResult.fail(ERROR_PASSWORD_CHANGE_REQUIRED)
        return await self.api_client.authorized_request(path, self.state.token, method=method, **options)

    def select_route(self, route: str):
        self.state = self.state.model_copy(update={"active_route": route})

    def toggle_language(self) -> str:
        language = "uz" if self.state.language == "ru" else "ru"
        self.state = self.state.model_copy(update={"language": language})
        return language
