from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from uuid import UUID
import asyncpg

from .schemas.academics import ClassCreateRequest, ClassResponse, SubjectRequest, SubjectResponse
from .schemas.user import SuccessResponse
from ..models.auth_models import TokenData
from ..db.db_client import AsyncPostgresClient
from .auth import require_admin
from .dependencies import get_db_client

# Every route here is admin-only.
router = APIRouter(tags=["Academics (admin)"], dependencies=[Depends(require_admin)])


# === Classes ===

@router.post("/classes", response_model=ClassResponse)
async def create_class(create_request: ClassCreateRequest, db_client: AsyncPostgresClient = Depends(get_db_client)):
    if not create_request.grade:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing grade")
    try:
        return await db_client.create_class(create_request.grade, create_request.name, create_request.teacher_id)
    except asyncpg.ForeignKeyViolationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown teacher")


@router.get("/classes", response_model=List[ClassResponse])
async def list_classes(db_client: AsyncPostgresClient = Depends(get_db_client)):
    return await db_client.list_classes()


@router.delete("/classes/{class_id}", response_model=SuccessResponse)
async def delete_class(class_id: UUID, db_client: AsyncPostgresClient = Depends(get_db_client)):
    await db_client.delete_class(class_id)
    return SuccessResponse(success=True)


# === Subjects ===

@router.post("/subjects", response_model=SubjectResponse)
async def create_subject(subject_request: SubjectRequest, db_client: AsyncPostgresClient = Depends(get_db_client)):
    if not subject_request.name_ru or not subject_request.name_uz:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")
    return await db_client.create_subject(subject_request.name_ru, subject_request.name_uz)


@router.get("/subjects", response_model=List[SubjectResponse])
async def list_subjects(db_client: AsyncPostgresClient = Depends(get_db_client)):
    return await db_client.list_subjects()


@router.put("/subjects/{subject_id}", response_model=SubjectResponse)
async def update_subject(subject_id: UUID, subject_request: SubjectRequest, db_client: AsyncPostgresClient = Depends(get_db_client)):
    if not subject_request.name_ru or not subject_request.name_uz:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")
    subject = await db_client.update_subject(subject_id, subject_request.name_ru, subject_request.name_uz)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


@router.delete("/subjects/{subject_id}", response_model=SuccessResponse)
async def delete_subject(subject_id: UUID, db_client: AsyncPostgresClient = Depends(get_db_client)):
    await db_client.delete_subject(subject_id)
    return SuccessResponse(success=True)


# === Tests (not stored yet) ===

@router.get("/tests")
async def list_tests():
    return []


@router.get("/teacher-tests")
async def list_teacher_tests():
    return []
