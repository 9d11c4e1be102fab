"""Student Routes — HTTP boundary of the Student aggregate.

Invariants:
    - Every success response is {"message": str, "data": ...} with camelCase keys
    - Identifiers are validated by the coordinator (400), never by FastAPI path types (422)
    - Routes never touch sessions or the asset store directly (delegate to StudentCoordinator)
    - DELETE goes through DeleteRetryController; no other route retries

Design Decisions:
    - Path params typed as str: a malformed UUID must surface as our ValidationError envelope
    - Request bodies read by student_request helpers so one route serves JSON and multipart
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status

from app.api.deps import get_coordinator, get_delete_controller
from app.api.routes.student_request import read_avatar, read_student_payload
from app.models.student import Student
from app.schemas.student import DeletionResponse, StudentResponse
from app.services.delete_retry import DeleteRetryController
from app.services.student_coordinator import StudentCoordinator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/students", tags=["students"])


def _envelope(message: str, data: Any) -> dict:
    return {"message": message, "data": data}


def _dump(student: Student) -> dict:
    return StudentResponse.model_validate(student).model_dump(mode="json", by_alias=True)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_student(
    request: Request,
    coordinator: StudentCoordinator = Depends(get_coordinator),
):
    """Create a student with its user and address. Optional multipart avatar."""
    payload, avatar = await read_student_payload(request, coordinator.max_avatar_bytes)
    student = await coordinator.create_student(payload, avatar)
    return _envelope("Student created successfully", _dump(student))


@router.get("")
async def list_students(
    coordinator: StudentCoordinator = Depends(get_coordinator),
):
    students = await coordinator.list_students()
    return _envelope("Success", [_dump(s) for s in students])


@router.get("/ward/{ward_id}")
async def list_ward_students(
    ward_id: str,
    coordinator: StudentCoordinator = Depends(get_coordinator),
):
    students = await coordinator.list_ward_students(ward_id)
    return _envelope("Success", [_dump(s) for s in students])


@router.get("/user/{user_id}")
async def get_student_by_user(
    user_id: str,
    coordinator: StudentCoordinator = Depends(get_coordinator),
):
    student = await coordinator.get_student_by_user(user_id)
    return _envelope("Success", _dump(student))


@router.get("/{student_id}")
async def get_student(
    student_id: str,
    coordinator: StudentCoordinator = Depends(get_coordinator),
):
    student = await coordinator.get_student(student_id)
    return _envelope("Success", _dump(student))


@router.put("/upload/{student_id}")
async def upload_avatar(
    student_id: str,
    request: Request,
    coordinator: StudentCoordinator = Depends(get_coordinator),
):
    """Replace the student's avatar (multipart "avatar" part required)."""
    avatar = await read_avatar(request, coordinator.max_avatar_bytes)
    student = await coordinator.upload_avatar(student_id, avatar)
    return _envelope("Avatar updated successfully", _dump(student))


@router.put("/{student_id}")
async def update_student(
    student_id: str,
    request: Request,
    coordinator: StudentCoordinator = Depends(get_coordinator),
):
    """Partial update of student, user and address fields. Optional multipart avatar."""
    payload, avatar = await read_student_payload(request, coordinator.max_avatar_bytes)
    student = await coordinator.update_student(student_id, payload, avatar)
    return _envelope("Student updated successfully", _dump(student))


@router.delete("/{student_id}")
async def delete_student(
    student_id: str,
    controller: DeleteRetryController = Depends(get_delete_controller),
):
    """Delete the student with its user, address and token metadata."""
    result = await controller.delete_student(student_id)
    data = DeletionResponse.model_validate(result).model_dump(mode="json", by_alias=True)
    return _envelope("Student and linked data deleted", data)
