"""
Student-teacher approval workflow.

    pending --> approved
    pending --> rejected

Decisions are last-write-wins by default: deciding an already decided link
overwrites it. With ``APPROVAL_DECISIONS_FINAL`` the decided states are
terminal and a second decision is refused.
"""
import logging
from typing import List, Optional, Set, Tuple

from paperbank.core.config import settings
from paperbank.core.errors import AuthorizationError, NotFoundError, ValidationError
from paperbank.models.orm import LinkStatus, StudentTeacherLink, User
from paperbank.models.schemas import DashboardStats
from paperbank.storage import Storage

logger = logging.getLogger(__name__)


def decide_link(storage: Storage, link_id: int, status: LinkStatus, teacher: User,
                final: Optional[bool] = None) -> StudentTeacherLink:
    if status == LinkStatus.PENDING:
        raise ValidationError("Invalid status")
    link = storage.get_link(link_id)
    if not link:
        raise NotFoundError("Student link not found")
    if link.teacher_id != teacher.id:
        raise AuthorizationError("Forbidden: This request is addressed to another teacher")

    final = settings.APPROVAL_DECISIONS_FINAL if final is None else final
    if link.status != LinkStatus.PENDING.value:
        if final:
            raise ValidationError(f"Student link already {link.status}")
        logger.warning(f"Link {link_id} re-decided: {link.status} -> {status.value}")

    updated = storage.update_link_status(link_id, status.value)
    logger.info(f"Teacher {teacher.id} set link {link_id} (student {link.student_id}) to {status.value}")
    return updated


def _students_for(storage: Storage, teacher_id: int, status: LinkStatus,
                  unique: bool = False) -> List[Tuple[StudentTeacherLink, User]]:
    pairs = []
    seen = set()
    for link in storage.get_links_by_teacher(teacher_id, status=status.value):
        if unique and link.student_id in seen:
            continue
        student = storage.get_user(link.student_id)
        if student:
            seen.add(link.student_id)
            pairs.append((link, student))
    return pairs


def approved_students(storage: Storage, teacher_id: int) -> List[User]:
    """Each approved student once, in link order."""
    return [student for _, student in _students_for(storage, teacher_id, LinkStatus.APPROVED, unique=True)]


def approved_student_ids(storage: Storage, teacher_id: int) -> Set[int]:
    return {student.id for student in approved_students(storage, teacher_id)}


def pending_requests(storage: Storage, teacher_id: int) -> List[Tuple[StudentTeacherLink, User]]:
    return _students_for(storage, teacher_id, LinkStatus.PENDING)


def dashboard_stats(storage: Storage, teacher_id: int) -> DashboardStats:
    return DashboardStats(
        total_students=len(approved_students(storage, teacher_id)),
        pending_approvals=len(storage.get_links_by_teacher(teacher_id, status=LinkStatus.PENDING.value)),
        tests_created=len(storage.get_tests_by_teacher(teacher_id)),
        tests_assigned=len(storage.get_assignments_by_teacher(teacher_id)),
    )
