import copy
import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from paperbank.models.orm import (
    AssignedTest,
    Institution,
    Question,
    StudentTeacherLink,
    Test,
    User,
)
from paperbank.models.schemas import QuestionFilters


def _now() -> datetime:
    return datetime.now(timezone.utc)


def question_matches(question: Question, filters: QuestionFilters) -> bool:
    """Field equality on every set dimension; ``tag`` is a membership test."""
    for name, value in filters.model_dump(mode="json", exclude_none=True).items():
        if name == "tag":
            if value not in (question.tags or []):
                return False
        elif getattr(question, name) != value:
            return False
    return True


class MemoryStorage:
    """Dict-backed Storage for tests and local demos; not for production."""

    def __init__(self):
        self.users: Dict[int, User] = {}
        self.institutions: Dict[int, Institution] = {}
        self.links: Dict[int, StudentTeacherLink] = {}
        self.questions: Dict[int, Question] = {}
        self.tests: Dict[int, Test] = {}
        self.assignments: Dict[int, AssignedTest] = {}
        self._ids = {name: itertools.count(1) for name in
                     ("users", "institutions", "links", "questions", "tests", "assignments")}

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    # ---- users & institutions ----

    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email.lower() == email.lower()), None)

    def create_user(self, **fields: Any) -> User:
        user = User(id=self._next_id("users"), **fields)
        self.users[user.id] = user
        return user

    def set_user_institution(self, user_id: int, institution_id: int) -> Optional[User]:
        user = self.users.get(user_id)
        if user:
            user.institution_id = institution_id
        return user

    def get_institution(self, institution_id: int) -> Optional[Institution]:
        return self.institutions.get(institution_id)

    def create_institution(self, **fields: Any) -> Institution:
        institution = Institution(id=self._next_id("institutions"), **fields)
        self.institutions[institution.id] = institution
        return institution

    # ---- student-teacher links ----

    def get_link(self, link_id: int) -> Optional[StudentTeacherLink]:
        return self.links.get(link_id)

    def get_links_by_teacher(self, teacher_id: int, status: Optional[str] = None) -> List[StudentTeacherLink]:
        return [
            link for link in self.links.values()
            if link.teacher_id == teacher_id and (status is None or link.status == status)
        ]

    def create_link(self, teacher_id: int, student_id: int, status: str) -> StudentTeacherLink:
        link = StudentTeacherLink(id=self._next_id("links"), teacher_id=teacher_id,
                                  student_id=student_id, status=status)
        self.links[link.id] = link
        return link

    def update_link_status(self, link_id: int, status: str) -> Optional[StudentTeacherLink]:
        link = self.links.get(link_id)
        if link:
            link.status = status
        return link

    # ---- question bank ----

    def get_question(self, question_id: int) -> Optional[Question]:
        return self.questions.get(question_id)

    def find_questions(self, filters: QuestionFilters) -> List[Question]:
        return [q for q in self.questions.values() if question_matches(q, filters)]

    def count_questions(self) -> int:
        return len(self.questions)

    def create_question(self, **fields: Any) -> Question:
        question = Question(id=self._next_id("questions"), **fields)
        self.questions[question.id] = question
        return question

    # ---- tests ----

    def get_test(self, test_id: int) -> Optional[Test]:
        return self.tests.get(test_id)

    def get_tests_by_teacher(self, teacher_id: int) -> List[Test]:
        owned = [t for t in self.tests.values() if t.created_by_teacher_id == teacher_id]
        return sorted(owned, key=lambda t: (t.created_at, t.id), reverse=True)

    def create_test(self, test: Test) -> Test:
        test.id = self._next_id("tests")
        test.created_at = _now()
        test.questions_list = copy.deepcopy(test.questions_list or [])
        self.tests[test.id] = test
        return test

    def update_test(self, test_id: int, changes: Dict[str, Any]) -> Optional[Test]:
        test = self.tests.get(test_id)
        if not test:
            return None
        for key, value in changes.items():
            setattr(test, key, copy.deepcopy(value))
        return test

    def delete_test(self, test_id: int) -> bool:
        if self.tests.pop(test_id, None) is None:
            return False
        for assignment_id in [a.id for a in self.assignments.values() if a.test_id == test_id]:
            del self.assignments[assignment_id]
        return True

    # ---- assignments ----

    def get_assignment(self, assignment_id: int) -> Optional[AssignedTest]:
        return self.assignments.get(assignment_id)

    def get_assignments_by_teacher(self, teacher_id: int) -> List[AssignedTest]:
        return [a for a in self.assignments.values() if a.assigned_by_teacher_id == teacher_id]

    def get_assignments_by_test(self, test_id: int) -> List[AssignedTest]:
        return [a for a in self.assignments.values() if a.test_id == test_id]

    def create_assignments(self, rows: Sequence[Dict[str, Any]]) -> List[AssignedTest]:
        # Build every record before storing any, so a bad row stores nothing.
        assigned_at = _now()
        records = [AssignedTest(assigned_at=assigned_at, **row) for row in rows]
        for record in records:
            if record.test_id is None or record.student_id is None or not record.status:
                raise ValueError("Assignment rows need test_id, student_id and status")
        for record in records:
            record.id = self._next_id("assignments")
            self.assignments[record.id] = record
        return records

    def update_assignment(self, assignment_id: int, changes: Dict[str, Any]) -> Optional[AssignedTest]:
        record = self.assignments.get(assignment_id)
        if record:
            for key, value in changes.items():
                setattr(record, key, value)
        return record
