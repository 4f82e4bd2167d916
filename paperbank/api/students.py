from typing import List

from fastapi import APIRouter, Depends

from paperbank.core.security import require_teacher
from paperbank.models.orm import User
from paperbank.models.schemas import CamelModel, LinkDecision, PendingStudentOut, StudentOut
from paperbank.services.approvals import approved_students, decide_link, pending_requests
from paperbank.storage import Storage, get_storage

router = APIRouter()


class StudentList(CamelModel):
    students: List[StudentOut]


class PendingList(CamelModel):
    pending_students: List[PendingStudentOut]


class Decided(CamelModel):
    message: str
    link_id: int
    status: str


@router.get("", response_model=StudentList)
def list_students(teacher: User = Depends(require_teacher), storage: Storage = Depends(get_storage)):
    students = approved_students(storage, teacher.id)
    return StudentList(students=[StudentOut.model_validate(s) for s in students])


@router.get("/pending", response_model=PendingList)
def list_pending(teacher: User = Depends(require_teacher), storage: Storage = Depends(get_storage)):
    pending = [
        PendingStudentOut(
            id=student.id,
            name=student.name,
            email=student.email,
            roll_number=student.roll_number,
            link_id=link.id,
            request_date=link.id,
        )
        for link, student in pending_requests(storage, teacher.id)
    ]
    return PendingList(pending_students=pending)


@router.post("/{link_id}/status", response_model=Decided)
def set_status(link_id: int, payload: LinkDecision, teacher: User = Depends(require_teacher),
               storage: Storage = Depends(get_storage)):
    link = decide_link(storage, link_id, payload.status, teacher)
    return Decided(message=f"Student {link.status}", link_id=link.id, status=link.status)
