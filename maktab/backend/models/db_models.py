# maktab/backend/models/db_models.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from uuid import UUID

ROLES = ("student", "teacher", "admin")


class User(BaseModel):
    """
    Represents an account without its credential, mapping to the 'users' table.
    """
    id: UUID = Field(..., description="Stable identifier, primary key")
    username: str = Field(..., description="Globally unique login name")
    role: str = Field(..., description="One of student, teacher, admin. Never changes after creation.")
    first_name: str = ""
    last_name: str = ""
    school: Optional[str] = ""
    grade: Optional[str] = None
    grade_section: Optional[str] = None
    is_temporary_password: bool = True
    created_at: Optional[datetime] = None


class UserRecord(User):
    """
    A full 'users' row including the bcrypt hash. Never leaves the service layer.
    """
    password_hash: str

    def public(self) -> User:
        return User(**self.model_dump(exclude={"password_hash"}))


class NewUser(BaseModel):
    """Fields needed to insert a 'users' row."""
    username: str
    password_hash: str
    role: str
    first_name: str = ""
    last_name: str = ""
    school: Optional[str] = ""
    grade: Optional[str] = None
    grade_section: Optional[str] = None
    is_temporary_password: bool = True


class SchoolClass(BaseModel):
    """
    Represents a class (grade + letter), mapping to the 'classes' table.
    """
    id: UUID
    grade: str
    name: str = ""
    teacher_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class Subject(BaseModel):
    """
    Represents a subject with its Russian and Uzbek names, mapping to the 'subjects' table.
    """
    id: UUID
    name_ru: str
    name_uz: str
    created_at: Optional[datetime] = None
