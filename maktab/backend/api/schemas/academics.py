# maktab/backend/api/schemas/academics.py
from typing import Optional
from uuid import UUID
from datetime import datetime

from .user import CamelModel


class ClassCreateRequest(CamelModel):
    grade: str = ""
    name: str = ""
    teacher_id: Optional[UUID] = None


class ClassResponse(CamelModel):
    id: UUID
    grade: str
    name: str = ""
    teacher_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class SubjectRequest(CamelModel):
    name_ru: str = ""
    name_uz: str = ""


class SubjectResponse(CamelModel):
    id: UUID
    name_ru: str
    name_uz: str
    created_at: Optional[datetime] = None
