from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from paperbank.models.orm import (
    AssignedTest,
    Institution,
    Question,
    StudentTeacherLink,
    Test,
    User,
)
from paperbank.models.schemas import QuestionFilters


class Storage(Protocol):
    """Persistence contract shared by the SQL backend and the in-memory double.

    Write methods persist immediately. ``create_assignments`` and
    ``delete_test`` are all-or-nothing.
    """

    # Users & institutions
    def get_user(self, user_id: int) -> Optional[User]: ...
    def get_user_by_email(self, email: str) -> Optional[User]: ...
    def create_user(self, **fields: Any) -> User: ...
    def set_user_institution(self, user_id: int, institution_id: int) -> Optional[User]: ...
    def get_institution(self, institution_id: int) -> Optional[Institution]: ...
    def create_institution(self, **fields: Any) -> Institution: ...

    # Student-teacher links
    def get_link(self, link_id: int) -> Optional[StudentTeacherLink]: ...
    def get_links_by_teacher(self, teacher_id: int, status: Optional[str] = None) -> List[StudentTeacherLink]: ...
    def create_link(self, teacher_id: int, student_id: int, status: str) -> StudentTeacherLink: ...
    def update_link_status(self, link_id: int, status: str) -> Optional[StudentTeacherLink]: ...

    # Question bank
    def get_question(self, question_id: int) -> Optional[Question]: ...
    def find_questions(self, filters: QuestionFilters) -> List[Question]: ...
    def count_questions(self) -> int: ...
    def create_question(self, **fields: Any) -> Question: ...

    # Tests
    def get_test(self, test_id: int) -> Optional[Test]: ...
    def get_tests_by_teacher(self, teacher_id: int) -> List[Test]: ...
    def create_test(self, test: Test) -> Test: ...
    def update_test(self, test_id: int, changes: Dict[str, Any]) -> Optional[Test]: ...
    def delete_test(self, test_id: int) -> bool: ...

    # Assignments
    def get_assignment(self, assignment_id: int) -> Optional[AssignedTest]: ...
    def get_assignments_by_teacher(self, teacher_id: int) -> List[AssignedTest]: ...
    def get_assignments_by_test(self, test_id: int) -> List[AssignedTest]: ...
    def create_assignments(self, rows: Sequence[Dict[str, Any]]) -> List[AssignedTest]: ...
    def update_assignment(self, assignment_id: int, changes: Dict[str, Any]) -> Optional[AssignedTest]: ...
