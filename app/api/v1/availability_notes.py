from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_staff_user
from app.models.admin_user import AdminUser
from app.schemas.availability_note import NoteCreateRequest
from app.schemas.common import success_response
from app.services.obstruction_service import obstruction_service

router = APIRouter(prefix="/availability-notes")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Add an availability note (Admin/Staff)")
def create_note(
    body: NoteCreateRequest,
    db:   Session = Depends(get_db),
    current_user: AdminUser = Depends(get_staff_user),
):
    """
    `maintenance` and `blocked` notes take their target out of availability
    for that day; `other` is an annotation only.
    """
    data = obstruction_service.create_note(db, body, current_user.id)
    return success_response("Availability note created", data)


@router.delete("/{note_id}", summary="Delete an availability note (Admin/Staff)")
def delete_note(
    note_id: int,
    db:      Session = Depends(get_db),
    current_user: AdminUser = Depends(get_staff_user),
):
    obstruction_service.delete_note(db, note_id, current_user.id)
    return success_response("Availability note deleted", None)
