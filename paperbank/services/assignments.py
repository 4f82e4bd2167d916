import logging
from datetime import datetime
from typing import List, Optional, Sequence

from paperbank.core.errors import AuthorizationError, NotFoundError, ValidationError
from paperbank.models.orm import AssignedTest, AssignmentStatus, Test, User
from paperbank.models.schemas import AssignmentUpdate
from paperbank.services.approvals import approved_student_ids
from paperbank.storage import Storage

logger = logging.getLogger(__name__)

# Forward-only lifecycle.
_STATUS_ORDER = [AssignmentStatus.ASSIGNED, AssignmentStatus.COMPLETED, AssignmentStatus.GRADED]


def _unique(ids: Sequence[int]) -> List[int]:
    seen = set()
    ordered = []
    for student_id in ids:
        if student_id not in seen:
            seen.add(student_id)
            ordered.append(student_id)
    return ordered


def assign_test(storage: Storage, test: Test, teacher: User, student_ids: Sequence[int],
                due_date: Optional[datetime] = None, notes: Optional[str] = None) -> int:
    """Create one ``assigned`` record per student and return how many were written.

    The batch is written in one transaction. Repeating an earlier assignment
    creates a fresh record; duplicates inside one call are collapsed.
    """
    if test.created_by_teacher_id != teacher.id:
        raise AuthorizationError("Forbidden: You can only assign your own tests")
    students = _unique(student_ids)
    if not students:
        raise ValidationError("No students selected")

    roster = approved_student_ids(storage, teacher.id)
    unknown = [sid for sid in students if sid not in roster]
    if unknown:
        raise ValidationError(
            "Students are not approved for this teacher",
            details=[{"loc": ["studentIds"], "msg": f"not in roster: {unknown}", "type": "roster"}],
        )

    rows = [
        {
            "test_id": test.id,
            "student_id": sid,
            "assigned_by_teacher_id": teacher.id,
            "status": AssignmentStatus.ASSIGNED.value,
            "due_date": due_date,
            "notes": notes,
        }
        for sid in students
    ]
    created = storage.create_assignments(rows)
    logger.info(f"Teacher {teacher.id} assigned test {test.id} to {len(created)} students")
    return len(created)


def get_owned_assignment(storage: Storage, assignment_id: int, teacher: User) -> AssignedTest:
    record = storage.get_assignment(assignment_id)
    if not record:
        raise NotFoundError("Assignment not found")
    if record.assigned_by_teacher_id != teacher.id:
        raise AuthorizationError("Forbidden: You can only update assignments you made")
    return record


def update_assignment(storage: Storage, record: AssignedTest, update: AssignmentUpdate) -> AssignedTest:
    """Advance the lifecycle and/or record a score."""
    current = AssignmentStatus(record.status)
    target = update.status
    if target is None and update.score is not None:
        target = AssignmentStatus.GRADED
    changes = {}
    if target is not None and target != current:
        if _STATUS_ORDER.index(target) < _STATUS_ORDER.index(current):
            raise ValidationError(f"Cannot move assignment from {current.value} back to {target.value}")
        changes["status"] = target.value
    if update.score is not None:
        test = storage.get_test(record.test_id)
        if test and test.total_marks is not None and update.score > test.total_marks:
            raise ValidationError(f"Score cannot exceed total marks ({test.total_marks})")
        changes["score"] = update.score
    if not changes:
        return record
    updated = storage.update_assignment(record.id, changes)
    logger.info(f"Assignment {record.id} updated: {changes}")
    return updated
