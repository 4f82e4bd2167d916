from fastapi import APIRouter, Depends

from paperbank.core.security import require_teacher
from paperbank.models.orm import User
from paperbank.models.schemas import AssignmentOut, AssignmentUpdate, CamelModel
from paperbank.services.assignments import get_owned_assignment, update_assignment
from paperbank.storage import Storage, get_storage

router = APIRouter()


class AssignmentEnvelope(CamelModel):
    assignment: AssignmentOut


@router.patch("/{assignment_id}", response_model=AssignmentEnvelope)
def patch_assignment(assignment_id: int, payload: AssignmentUpdate, teacher: User = Depends(require_teacher),
                     storage: Storage = Depends(get_storage)):
    record = get_owned_assignment(storage, assignment_id, teacher)
    updated = update_assignment(storage, record, payload)
    return AssignmentEnvelope(assignment=AssignmentOut.model_validate(updated))
