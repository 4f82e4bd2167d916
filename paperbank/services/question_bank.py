import logging
from typing import Any, List, Mapping

from paperbank.core.errors import parse_model
from paperbank.models.orm import Question, User
from paperbank.models.schemas import QuestionCreate, QuestionFilters, QuestionSnapshot
from paperbank.storage import Storage

logger = logging.getLogger(__name__)


def parse_filters(params: Mapping[str, Any]) -> QuestionFilters:
    """Build filter criteria from query parameters, rejecting unknown keys."""
    cleaned = {key: value for key, value in params.items() if value not in (None, "")}
    return parse_model(QuestionFilters, cleaned, message="Invalid question filters")


def search_questions(storage: Storage, filters: QuestionFilters) -> List[Question]:
    questions = storage.find_questions(filters)
    logger.debug(f"Question search {filters.model_dump(exclude_none=True)} matched {len(questions)}")
    return questions


def create_question(storage: Storage, payload: QuestionCreate, teacher: User) -> Question:
    fields = payload.model_dump(mode="json")
    question = storage.create_question(**fields, created_by_teacher_id=teacher.id)
    logger.info(f"Teacher {teacher.id} added question {question.id} ({question.subject}/{question.chapter})")
    return question


def snapshot(question: Question) -> QuestionSnapshot:
    """Copy a bank question by value, ready to embed in a test."""
    return QuestionSnapshot.model_validate(question, from_attributes=True)
