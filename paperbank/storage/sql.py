import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paperbank.models.orm import (
    AssignedTest,
    Institution,
    Question,
    StudentTeacherLink,
    Test,
    User,
)
from paperbank.models.schemas import QuestionFilters

logger = logging.getLogger(__name__)

# Filter dimensions that map onto a plain column equality.
_COLUMN_FILTERS = {
    "subject": Question.subject,
    "chapter": Question.chapter,
    "topic": Question.topic,
    "difficulty": Question.difficulty,
    "type": Question.type,
    "created_by_teacher_id": Question.created_by_teacher_id,
}


class SqlStorage:
    """Storage over one SQLAlchemy session (one per request)."""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(obj)
        return obj

    # ---- users & institutions ----

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.scalar(select(User).where(func.lower(User.email) == email.lower()))

    def create_user(self, **fields: Any) -> User:
        return self._save(User(**fields))

    def set_user_institution(self, user_id: int, institution_id: int) -> Optional[User]:
        user = self.db.get(User, user_id)
        if not user:
            return None
        user.institution_id = institution_id
        return self._save(user)

    def get_institution(self, institution_id: int) -> Optional[Institution]:
        return self.db.get(Institution, institution_id)

    def create_institution(self, **fields: Any) -> Institution:
        return self._save(Institution(**fields))

    # ---- student-teacher links ----

    def get_link(self, link_id: int) -> Optional[StudentTeacherLink]:
        return self.db.get(StudentTeacherLink, link_id)

    def get_links_by_teacher(self, teacher_id: int, status: Optional[str] = None) -> List[StudentTeacherLink]:
        stmt = select(StudentTeacherLink).where(StudentTeacherLink.teacher_id == teacher_id)
        if status:
            stmt = stmt.where(StudentTeacherLink.status == status)
        return list(self.db.scalars(stmt.order_by(StudentTeacherLink.id)))

    def create_link(self, teacher_id: int, student_id: int, status: str) -> StudentTeacherLink:
        return self._save(StudentTeacherLink(teacher_id=teacher_id, student_id=student_id, status=status))

    def update_link_status(self, link_id: int, status: str) -> Optional[StudentTeacherLink]:
        link = self.db.get(StudentTeacherLink, link_id)
        if not link:
            return None
        link.status = status
        return self._save(link)

    # ---- question bank ----

    def get_question(self, question_id: int) -> Optional[Question]:
        return self.db.get(Question, question_id)

    def find_questions(self, filters: QuestionFilters) -> List[Question]:
        stmt = select(Question)
        for name, value in filters.model_dump(mode="json", exclude_none=True).items():
            column = _COLUMN_FILTERS.get(name)
            if column is not None:
                stmt = stmt.where(column == value)
        rows = list(self.db.scalars(stmt.order_by(Question.id)))
        if filters.tag:
            # JSON containment is dialect specific; tag sets are small.
            rows = [q for q in rows if filters.tag in (q.tags or [])]
        return rows

    def count_questions(self) -> int:
        return self.db.scalar(select(func.count()).select_from(Question)) or 0

    def create_question(self, **fields: Any) -> Question:
        return self._save(Question(**fields))

    # ---- tests ----

    def get_test(self, test_id: int) -> Optional[Test]:
        return self.db.get(Test, test_id)

    def get_tests_by_teacher(self, teacher_id: int) -> List[Test]:
        stmt = (
            select(Test)
            .where(Test.created_by_teacher_id == teacher_id)
            .order_by(Test.created_at.desc(), Test.id.desc())
        )
        return list(self.db.scalars(stmt))

    def create_test(self, test: Test) -> Test:
        return self._save(test)

    def update_test(self, test_id: int, changes: Dict[str, Any]) -> Optional[Test]:
        test = self.db.get(Test, test_id)
        if not test:
            return None
        for key, value in changes.items():
            setattr(test, key, value)
        return self._save(test)

    def delete_test(self, test_id: int) -> bool:
        test = self.db.get(Test, test_id)
        if not test:
            return False
        try:
            self.db.execute(delete(AssignedTest).where(AssignedTest.test_id == test_id))
            self.db.delete(test)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return True

    # ---- assignments ----

    def get_assignment(self, assignment_id: int) -> Optional[AssignedTest]:
        return self.db.get(AssignedTest, assignment_id)

    def get_assignments_by_teacher(self, teacher_id: int) -> List[AssignedTest]:
        stmt = select(AssignedTest).where(AssignedTest.assigned_by_teacher_id == teacher_id)
        return list(self.db.scalars(stmt.order_by(AssignedTest.id)))

    def get_assignments_by_test(self, test_id: int) -> List[AssignedTest]:
        stmt = select(AssignedTest).where(AssignedTest.test_id == test_id)
        return list(self.db.scalars(stmt.order_by(AssignedTest.id)))

    def create_assignments(self, rows: Sequence[Dict[str, Any]]) -> List[AssignedTest]:
        records = [AssignedTest(**row) for row in rows]
        try:
            self.db.add_all(records)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Assignment batch of {len(records)} rolled back", exc_info=True)
            raise
        for record in records:
            self.db.refresh(record)
        return records

    def update_assignment(self, assignment_id: int, changes: Dict[str, Any]) -> Optional[AssignedTest]:
        record = self.db.get(AssignedTest, assignment_id)
        if not record:
            return None
        for key, value in changes.items():
            setattr(record, key, value)
        return self._save(record)
