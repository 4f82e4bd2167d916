import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Role(str, enum.Enum):
    TEACHER = "teacher"
    STUDENT = "student"


class LinkStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class TestDifficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    MIXED = "mixed"


class QuestionType(str, enum.Enum):
    MCQ = "mcq"
    SHORT_ANSWER = "short_answer"
    LONG_ANSWER = "long_answer"


class TestType(str, enum.Enum):
    TOPIC_TEST = "topic_test"
    CHAPTER_TEST = "chapter_test"
    MOCK_TEST = "mock_test"
    BOARD_PATTERN = "board_pattern"


class AssignmentStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    GRADED = "graded"


# ========== Accounts ==========

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(16))
    institution_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("institutions.id"), nullable=True)
    roll_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class Institution(Base):
    __tablename__ = "institutions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Not a foreign key: the institution row is written before the teacher points at it.
    created_by_teacher_id: Mapped[int] = mapped_column(Integer)


class StudentTeacherLink(Base):
    __tablename__ = "student_teacher_links"
    __table_args__ = (
        Index("idx_links_teacher_status", "teacher_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    teacher_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    status: Mapped[str] = mapped_column(String(16), default=LinkStatus.PENDING.value)


# ========== Content ==========

class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("idx_questions_subject_chapter", "subject", "chapter"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subject: Mapped[str] = mapped_column(String(255))
    chapter: Mapped[str] = mapped_column(String(255))
    topic: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    difficulty: Mapped[str] = mapped_column(String(16))
    type: Mapped[str] = mapped_column(String(16))
    question_text: Mapped[str] = mapped_column(Text)
    options: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    marks: Mapped[int] = mapped_column(Integer)
    created_by_teacher_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    tags: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)


class Test(Base):
    __tablename__ = "tests"
    # Keep pytest from treating the model as a test class.
    __test__ = False

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    subject: Mapped[str] = mapped_column(String(255))
    chapter: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    topic: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(32))
    difficulty: Mapped[str] = mapped_column(String(16))
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    total_marks: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_by_teacher_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # Denormalized question snapshots, never live references into the bank.
    questions_list: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)


class AssignedTest(Base):
    __tablename__ = "assigned_tests"
    __table_args__ = (
        Index("idx_assigned_teacher", "assigned_by_teacher_id"),
        Index("idx_assigned_student", "student_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    test_id: Mapped[int] = mapped_column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), index=True)
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    assigned_by_teacher_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
