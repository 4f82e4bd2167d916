"""
Request and response models.

Wire names are camelCase (``questionText``, ``totalMarks``) to match the
front-end; Python code uses the snake_case attribute names.
"""
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PositiveInt,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from paperbank.models.orm import (
    AssignmentStatus,
    Difficulty,
    LinkStatus,
    QuestionType,
    Role,
    TestDifficulty,
    TestType,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ========== Questions ==========

class QuestionFields(CamelModel):
    subject: str = Field(min_length=1)
    chapter: str = Field(min_length=1)
    topic: Optional[str] = None
    difficulty: Difficulty
    type: QuestionType
    question_text: str = Field(min_length=1)
    options: Optional[List[str]] = None
    answer: Optional[str] = None
    explanation: Optional[str] = None
    marks: PositiveInt
    tags: Optional[List[str]] = None

    @model_validator(mode="after")
    def check_options(self):
        if self.type == QuestionType.MCQ:
            if not self.options or len(self.options) < 2:
                raise ValueError("Multiple-choice questions need at least two options")
            if self.answer is not None and self.answer not in self.options:
                raise ValueError("Multiple-choice answer must be one of the options")
        elif self.options:
            raise ValueError(f"{self.type.value} questions cannot have options")
        return self


class QuestionCreate(QuestionFields):
    pass


class QuestionSnapshot(QuestionFields):
    """A by-value copy of a bank question embedded in a test."""

    id: Optional[int] = None
    created_by_teacher_id: Optional[int] = None


class QuestionOut(QuestionFields):
    id: int
    created_by_teacher_id: Optional[int] = None


class QuestionFilters(CamelModel):
    """One optional field per supported filter dimension; unknown keys are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    subject: Optional[str] = None
    chapter: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    type: Optional[QuestionType] = None
    created_by_teacher_id: Optional[int] = None
    tag: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


# ========== Tests ==========

class TestBase(CamelModel):
    __test__ = False

    title: str = Field(min_length=5)
    subject: str = Field(min_length=1)
    chapter: Optional[str] = None
    topic: Optional[str] = None
    type: TestType
    difficulty: TestDifficulty
    duration: Optional[PositiveInt] = None

    @field_validator("title", "subject", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class TestCreate(TestBase):
    __test__ = False

    questions_list: List[QuestionSnapshot] = Field(min_length=1)


class TestUpdate(CamelModel):
    """Partial update; absent fields are left untouched."""

    __test__ = False

    title: Optional[str] = Field(default=None, min_length=5)
    subject: Optional[str] = Field(default=None, min_length=1)
    chapter: Optional[str] = None
    topic: Optional[str] = None
    type: Optional[TestType] = None
    difficulty: Optional[TestDifficulty] = None
    duration: Optional[PositiveInt] = None
    questions_list: Optional[List[QuestionSnapshot]] = Field(default=None, min_length=1)

    @field_validator("title", "subject", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class TestOut(TestBase):
    __test__ = False

    id: int
    total_marks: Optional[int] = None
    created_by_teacher_id: int
    created_at: Optional[datetime] = None
    questions_list: List[QuestionSnapshot] = []


class PDFOptions(CamelModel):
    include_header: bool = True
    include_instructions: bool = True
    show_marks: bool = True
    include_answers: bool = False


# ========== Assignments ==========

class AssignRequest(CamelModel):
    student_ids: List[int] = Field(min_length=1)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def accept_plain_date(cls, v):
        # The front-end sends yyyy-MM-dd.
        if isinstance(v, str) and len(v) == 10:
            return datetime.combine(date.fromisoformat(v), time.min)
        return v


class AssignResult(CamelModel):
    message: str
    count: int


class AssignmentOut(CamelModel):
    id: int
    test_id: int
    student_id: int
    assigned_by_teacher_id: int
    assigned_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: AssignmentStatus
    score: Optional[int] = None
    notes: Optional[str] = None


class AssignmentUpdate(CamelModel):
    status: Optional[AssignmentStatus] = None
    score: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def not_empty(self):
        if self.status is None and self.score is None:
            raise ValueError("Provide a status or a score")
        return self


# ========== Accounts & roster ==========

class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role
    roll_number: Optional[str] = None
    institution_name: Optional[str] = None
    institution_address: Optional[str] = None
    teacher_id: Optional[int] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserSummary(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    institution_id: Optional[int] = None


class StudentOut(CamelModel):
    id: int
    name: str
    email: str
    roll_number: Optional[str] = None


class PendingStudentOut(StudentOut):
    link_id: int
    # Link ids grow monotonically, so they order requests by arrival.
    request_date: int


class LinkDecision(CamelModel):
    status: LinkStatus

    @field_validator("status")
    @classmethod
    def decided(cls, v: LinkStatus) -> LinkStatus:
        if v == LinkStatus.PENDING:
            raise ValueError("Status must be approved or rejected")
        return v


class DashboardStats(CamelModel):
    total_students: int
    pending_approvals: int
    tests_created: int
    tests_assigned: int
