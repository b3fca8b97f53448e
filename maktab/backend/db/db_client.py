import logging
from typing import List, Optional
from uuid import UUID
import asyncpg
from ..models.db_models import User, UserRecord, NewUser, SchoolClass, Subject

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    username TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('student', 'teacher', 'admin')),
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    school TEXT DEFAULT '',
    grade TEXT,
    grade_section TEXT,
    is_temporary_password BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS classes (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    grade TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    teacher_id UUID REFERENCES users(id) ON DELETE SET NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS subjects (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name_ru TEXT NOT NULL,
    name_uz TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""

USER_COLUMNS = "id, username, role, first_name, last_name, school, grade, grade_section, is_temporary_password, created_at"


class AsyncPostgresClient:
    """
    PostgreSQL client for every persistence operation.
    """
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def init_schema(self):
        """Creates the tables if they do not exist yet."""
        async with self._pool.acquire() as connection:
            await connection.execute(SCHEMA)

    # ===== Users =====

    async def get_user_by_credentials_key(self, username: str, role: str) -> Optional[UserRecord]:
        """Looks a user up by username AND role; the role is part of the key."""
        query = "SELECT * FROM users WHERE username = $1 AND role = $2;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, username, role)
            return UserRecord(**record) if record else None

    async def get_user_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        query = "SELECT * FROM users WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, user_id)
            return UserRecord(**record) if record else None

    async def username_exists(self, username: str) -> bool:
        query = "SELECT 1 FROM users WHERE username = $1;"
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, username) is not None

    async def create_user(self, new_user: NewUser) -> User:
        """
        Inserts a user. Raises asyncpg.UniqueViolationError when the username is taken.
        """
        query = f"""
            INSERT INTO users (username, password_hash, role, first_name, last_name, school, grade, grade_section, is_temporary_password)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING {USER_COLUMNS};
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query,
                new_user.username, new_user.password_hash, new_user.role,
                new_user.first_name, new_user.last_name, new_user.school,
                new_user.grade, new_user.grade_section, new_user.is_temporary_password
            )
            return User(**record)

    async def update_password(self, user_id: UUID, password_hash: str, is_temporary_password: bool) -> bool:
        """Replaces the hash and sets the temporary flag. Returns False when no row matched."""
        query = "UPDATE users SET password_hash = $1, is_temporary_password = $2 WHERE id = $3;"
        async with self._pool.acquire() as connection:
            status = await connection.execute(query, password_hash, is_temporary_password, user_id)
            return status != "UPDATE 0"

    async def list_users(self) -> List[User]:
        query = f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at DESC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [User(**record) for record in records]

    # ===== Classes =====

    async def create_class(self, grade: str, name: str, teacher_id: Optional[UUID]) -> SchoolClass:
        query = "INSERT INTO classes (grade, name, teacher_id) VALUES ($1, $2, $3) RETURNING *;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, grade, name, teacher_id)
            return SchoolClass(**record)

    async def list_classes(self) -> List[SchoolClass]:
        query = "SELECT * FROM classes ORDER BY created_at DESC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [SchoolClass(**record) for record in records]

    async def delete_class(self, class_id: UUID):
        query = "DELETE FROM classes WHERE id = $1;"
        async with self._pool.acquire() as connection:
            return await connection.execute(query, class_id)

    # ===== Subjects =====

    async def create_subject(self, name_ru: str, name_uz: str) -> Subject:
        query = "INSERT INTO subjects (name_ru, name_uz) VALUES ($1, $2) RETURNING *;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, name_ru, name_uz)
            return Subject(**record)

    async def list_subjects(self) -> List[Subject]:
        query = "SELECT * FROM subjects ORDER BY created_at DESC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [Subject(**record) for record in records]

    async def update_subject(self, subject_id: UUID, name_ru: str, name_uz: str) -> Optional[Subject]:
        query = "UPDATE subjects SET name_ru = $1, name_uz = $2 WHERE id = $3 RETURNING *;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, name_ru, name_uz, subject_id)
            return Subject(**record) if record else None

    async def delete_subject(self, subject_id: UUID):
        query = "DELETE FROM subjects WHERE id = $1;"
        async with self._pool.acquire() as connection:
            return await connection.execute(query, subject_id)
