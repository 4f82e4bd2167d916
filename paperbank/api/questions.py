from typing import List

from fastapi import APIRouter, Depends, Request

from paperbank.core.security import require_teacher
from paperbank.models.orm import User
from paperbank.models.schemas import CamelModel, QuestionCreate, QuestionFilters, QuestionOut
from paperbank.services.question_bank import create_question, parse_filters, search_questions
from paperbank.storage import Storage, get_storage

router = APIRouter()


class QuestionList(CamelModel):
    questions: List[QuestionOut]


class QuestionEnvelope(CamelModel):
    question: QuestionOut


def question_filters(request: Request) -> QuestionFilters:
    return parse_filters(request.query_params)


@router.get("", response_model=QuestionList, dependencies=[Depends(require_teacher)])
def list_questions(filters: QuestionFilters = Depends(question_filters), storage: Storage = Depends(get_storage)):
    questions = search_questions(storage, filters)
    return QuestionList(questions=[QuestionOut.model_validate(q) for q in questions])


@router.post("", response_model=QuestionEnvelope, status_code=201)
def add_question(payload: QuestionCreate, teacher: User = Depends(require_teacher),
                 storage: Storage = Depends(get_storage)):
    question = create_question(storage, payload, teacher)
    return QuestionEnvelope(question=QuestionOut.model_validate(question))
