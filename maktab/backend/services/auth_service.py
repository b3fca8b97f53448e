import asyncio
import hmac
import logging
from typing import Optional
from uuid import UUID

import asyncpg

from ..db.db_client import AsyncPostgresClient
from ..models.auth_models import AuthErrorCode, AuthResult, TokenData
from ..models.db_models import NewUser, ROLES
from .security import create_access_token, generate_otp, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """
    Credential verification, token issuance and the temporary-password lifecycle.

    Every method returns an AuthResult; expected failures are never raised.
    Hashing runs in a worker thread so bcrypt does not stall the event loop.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    # --- Self-service ---

    async def login(self, username: str, password: str, role: str) -> AuthResult:
        if not username or not password or not role:
            return AuthResult.fail(AuthErrorCode.VALIDATION_ERROR, "Missing credentials")

        logger.info(f"Login attempt for user '{username}' as '{role}'.")
        user = await self.db_client.get_user_by_credentials_key(username, role)
        if user is None:
            logger.warning(f"Login failed for '{username}': no account with role '{role}'.")
            return AuthResult.fail(AuthErrorCode.INVALID_CREDENTIALS, "Invalid credentials")

        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.warning(f"Login failed for '{username}': wrong password.")
            return AuthResult.fail(AuthErrorCode.INVALID_CREDENTIALS, "Invalid credentials")

        token = create_access_token(user.id, user.role)
        logger.info(f"User '{username}' ({user.role}) logged in. Password change required: {user.is_temporary_password}.")
        return AuthResult(
            success=True,
            user=user.public(),
            token=token,
            require_password_change=user.is_temporary_password,
        )

    async def change_password(self, user_id: UUID, current_password: str, new_password: str) -> AuthResult:
        """
        Re-verifies the current password against the stored hash, then stores the
        new one and clears the temporary flag. This is the only path that clears it.
        """
        if not current_password or not new_password:
            return AuthResult.fail(AuthErrorCode.VALIDATION_ERROR, "Missing fields")

        user = await self.db_client.get_user_by_id(user_id)
        if user is None:
            return AuthResult.fail(AuthErrorCode.NOT_FOUND, "User not found")

        if not await asyncio.to_thread(verify_password, current_password, user.password_hash):
            logger.warning(f"Password change rejected for '{user.username}': current password mismatch.")
            return AuthResult.fail(AuthErrorCode.UNAUTHORIZED, "Invalid password")

        new_hash = await asyncio.to_thread(hash_password, new_password)
        await self.db_client.update_password(user.id, new_hash, is_temporary_password=False)
        logger.info(f"User '{user.username}' changed their password.")
        return AuthResult(success=True)

    # --- Admin operations ---

    async def register_user(
        self,
        actor: TokenData,
        username: str,
        role: str,
        password: Optional[str] = None,
        first_name: str = "",
        last_name: str = "",
        school: Optional[str] = "",
        grade: Optional[str] = None,
        grade_section: Optional[str] = None,
    ) -> AuthResult:
        """
        Creates an account with a temporary password. When no password is given a
        one-time password is generated and returned in ``otp``.
        """
        if actor.role != "admin":
            return AuthResult.fail(AuthErrorCode.FORBIDDEN, "Forbidden")
        if not username or not role:
            return AuthResult.fail(AuthErrorCode.VALIDATION_ERROR, "Missing fields")
        if role not in ROLES:
            return AuthResult.fail(AuthErrorCode.VALIDATION_ERROR, f"Unknown role '{role}'")

        if await self.db_client.username_exists(username):
            return AuthResult.fail(AuthErrorCode.CONFLICT, "User already exists")

        otp = None
        if not password:
            otp = password = generate_otp()

        new_user = NewUser(
            username=username,
            password_hash=await asyncio.to_thread(hash_password, password),
            role=role,
            first_name=first_name,
            last_name=last_name,
            school=school,
            grade=grade,
            grade_section=grade_section,
            is_temporary_password=True,
        )
        try:
            user = await self.db_client.create_user(new_user)
        except asyncpg.UniqueViolationError:
            return AuthResult.fail(AuthErrorCode.CONFLICT, "User already exists")

        logger.info(f"Admin '{actor.user_id}' registered '{username}' as '{role}'.")
        return AuthResult(success=True, user=user, otp=otp, require_password_change=True)

    async def reset_password(self, actor: TokenData, user_id: UUID) -> AuthResult:
        """Issues a fresh one-time password and puts the account back into the temporary state."""
        if actor.role != "admin":
            return AuthResult.fail(AuthErrorCode.FORBIDDEN, "Forbidden")

        otp = generate_otp()
        new_hash = await asyncio.to_thread(hash_password, otp)
        if not await self.db_client.update_password(user_id, new_hash, is_temporary_password=True):
            return AuthResult.fail(AuthErrorCode.NOT_FOUND, "User not found")

        logger.info(f"Admin '{actor.user_id}' reset the password of user '{user_id}'.")
        return AuthResult(success=True, otp=otp, require_password_change=True)

    async def seed_admin(
        self,
        provided_secret: Optional[str],
        expected_secret: Optional[str],
        username: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> AuthResult:
        """Bootstraps an admin with a permanent password when the shared secret matches."""
        if not expected_secret or not provided_secret or not hmac.compare_digest(provided_secret.encode(), expected_secret.encode()):
            logger.warning("Admin seeding refused: missing or wrong secret.")
            return AuthResult.fail(AuthErrorCode.FORBIDDEN, "Forbidden")
        if not username or not password:
            return AuthResult.fail(AuthErrorCode.VALIDATION_ERROR, "Username and password required")

        if await self.db_client.username_exists(username):
            return AuthResult.fail(AuthErrorCode.CONFLICT, "User already exists")

        new_user = NewUser(
            username=username,
            password_hash=await asyncio.to_thread(hash_password, password),
            role="admin",
            first_name=first_name,
            last_name=last_name,
            is_temporary_password=False,
        )
        try:
            user = await self.db_client.create_user(new_user)
        except asyncpg.UniqueViolationError:
            return AuthResult.fail(AuthErrorCode.CONFLICT, "User already exists")

        logger.info(f"Seeded admin '{username}'.")
        return AuthResult(success=True, user=user, token=create_access_token(user.id, user.role))
