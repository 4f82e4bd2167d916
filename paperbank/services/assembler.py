"""
Test assembly.

A test is frozen at creation: its questions are copied by value and the total
is summed once. Replacing the question list through ``apply_update``
recomputes the total in the same write, so ``total_marks`` always equals the
sum of the embedded marks.
"""
import logging
from typing import Any, Dict, Mapping, Sequence, Union

from paperbank.core.errors import AuthorizationError, NotFoundError, parse_model
from paperbank.models.orm import Test, User
from paperbank.models.schemas import QuestionSnapshot, TestCreate, TestUpdate
from paperbank.storage import Storage

logger = logging.getLogger(__name__)


def total_marks(questions: Sequence[QuestionSnapshot]) -> int:
    return sum(q.marks for q in questions)


def freeze_questions(questions: Sequence[QuestionSnapshot]) -> list:
    """Serialize snapshots to plain JSON data, detached from the inputs."""
    return [q.model_dump(mode="json") for q in questions]


def assemble_test(payload: Union[TestCreate, Mapping[str, Any]], teacher_id: int) -> Test:
    """Build an unsaved Test from form fields and the selected questions.

    Raises ValidationError for a short title, empty subject, unknown type or
    difficulty, or an empty question selection.
    """
    draft = parse_model(TestCreate, payload, message="Invalid test data")
    return Test(
        title=draft.title,
        subject=draft.subject,
        chapter=draft.chapter,
        topic=draft.topic,
        type=draft.type.value,
        difficulty=draft.difficulty.value,
        duration=draft.duration,
        total_marks=total_marks(draft.questions_list),
        created_by_teacher_id=teacher_id,
        questions_list=freeze_questions(draft.questions_list),
    )


def create_test(storage: Storage, payload: Union[TestCreate, Mapping[str, Any]], teacher: User) -> Test:
    test = storage.create_test(assemble_test(payload, teacher.id))
    logger.info(
        f"Teacher {teacher.id} created test {test.id} '{test.title}' "
        f"with {len(test.questions_list)} questions, {test.total_marks} marks"
    )
    return test


def update_changes(payload: Union[TestUpdate, Mapping[str, Any]]) -> Dict[str, Any]:
    """Column changes for a partial update."""
    update = parse_model(TestUpdate, payload, message="Invalid test data")
    changes = update.model_dump(mode="json", exclude_unset=True, exclude={"questions_list"})
    # Explicit nulls are only meaningful for the optional columns.
    for required in ("title", "subject", "type", "difficulty"):
        if required in changes and changes[required] is None:
            changes.pop(required)
    if update.questions_list is not None:
        changes["questions_list"] = freeze_questions(update.questions_list)
        changes["total_marks"] = total_marks(update.questions_list)
    return changes


def apply_update(storage: Storage, test: Test, payload: Union[TestUpdate, Mapping[str, Any]]) -> Test:
    changes = update_changes(payload)
    if not changes:
        return test
    updated = storage.update_test(test.id, changes)
    logger.info(f"Test {test.id} updated: {sorted(changes)}")
    return updated


def get_owned_test(storage: Storage, test_id: int, teacher: User, action: str = "access") -> Test:
    test = storage.get_test(test_id)
    if not test:
        raise NotFoundError("Test not found")
    if test.created_by_teacher_id != teacher.id:
        logger.warning(f"Teacher {teacher.id} tried to {action} test {test_id}")
        raise AuthorizationError(f"Forbidden: You can only {action} your own tests")
    return test
