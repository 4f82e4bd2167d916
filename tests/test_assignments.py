import pytest

from conftest import paper_payload
from paperbank.core.errors import AuthorizationError, NotFoundError, ValidationError
from paperbank.models.orm import AssignmentStatus, LinkStatus
from paperbank.models.schemas import AssignmentUpdate
from paperbank.services import assembler, assignments


@pytest.fixture
def roster(storage):
    """Three students with ids 1, 2 and 3, then their teacher and a test."""
    students = [storage.create_user(name=name, email=f"{name.lower()}@school.org", password="x", role="student")
                for name in ("Ann", "Ben", "Cal")]
    teacher = storage.create_user(name="Ada Teacher", email="ada@school.org", password="x", role="teacher")
    for student in students:
        storage.create_link(teacher_id=teacher.id, student_id=student.id, status=LinkStatus.APPROVED.value)
    test = assembler.create_test(storage, paper_payload(), teacher)
    return teacher, test


def test_assigning_to_three_students(storage, roster):
    teacher, test = roster

    count = assignments.assign_test(storage, test, teacher, [1, 2, 3])

    assert count == 3
    records = storage.get_assignments_by_test(test.id)
    assert sorted(r.student_id for r in records) == [1, 2, 3]
    assert {r.status for r in records} == {"assigned"}
    assert all(r.due_date is None and r.assigned_by_teacher_id == teacher.id for r in records)


def test_duplicates_in_one_request_are_collapsed(storage, roster):
    teacher, test = roster

    assert assignments.assign_test(storage, test, teacher, [2, 2, 1, 2]) == 2
    assert len(storage.get_assignments_by_test(test.id)) == 2


def test_repeat_assignment_creates_new_records(storage, roster):
    teacher, test = roster
    assignments.assign_test(storage, test, teacher, [1])
    assignments.assign_test(storage, test, teacher, [1], notes="retake")

    records = storage.get_assignments_by_test(test.id)
    assert [r.notes for r in records] == [None, "retake"]


def test_no_students_selected(storage, roster):
    teacher, test = roster
    with pytest.raises(ValidationError, match="No students selected"):
        assignments.assign_test(storage, test, teacher, [])


def test_students_outside_roster_reject_whole_batch(storage, roster, make_student):
    teacher, test = roster
    pending, _ = make_student("Dee", teacher)

    with pytest.raises(ValidationError) as exc:
        assignments.assign_test(storage, test, teacher, [1, pending.id, 99])

    assert str(pending.id) in exc.value.details[0]["msg"]
    assert storage.get_assignments_by_test(test.id) == []


def test_only_owner_can_assign(storage, roster):
    _, test = roster
    other = storage.create_user(name="Other", email="other@school.org", password="x", role="teacher")

    with pytest.raises(AuthorizationError):
        assignments.assign_test(storage, test, other, [1])


def test_lifecycle_moves_forward(storage, roster):
    teacher, test = roster
    assignments.assign_test(storage, test, teacher, [1])
    record = storage.get_assignments_by_test(test.id)[0]

    record = assignments.update_assignment(storage, record, AssignmentUpdate(status=AssignmentStatus.COMPLETED))
    assert record.status == "completed"

    with pytest.raises(ValidationError):
        assignments.update_assignment(storage, record, AssignmentUpdate(status=AssignmentStatus.ASSIGNED))


def test_score_implies_graded(storage, roster):
    teacher, test = roster
    assignments.assign_test(storage, test, teacher, [1])
    record = storage.get_assignments_by_test(test.id)[0]

    record = assignments.update_assignment(storage, record, AssignmentUpdate(score=4))

    assert record.status == "graded"
    assert record.score == 4


def test_score_cannot_exceed_total_marks(storage, roster):
    teacher, test = roster
    assignments.assign_test(storage, test, teacher, [1])
    record = storage.get_assignments_by_test(test.id)[0]

    with pytest.raises(ValidationError):
        assignments.update_assignment(storage, record, AssignmentUpdate(score=test.total_marks + 1))
    assert record.score is None


def test_owned_assignment_lookup(storage, roster):
    teacher, test = roster
    other = storage.create_user(name="Other", email="other@school.org", password="x", role="teacher")
    assignments.assign_test(storage, test, teacher, [1])
    record = storage.get_assignments_by_test(test.id)[0]

    assert assignments.get_owned_assignment(storage, record.id, teacher) is record
    with pytest.raises(AuthorizationError):
        assignments.get_owned_assignment(storage, record.id, other)
    with pytest.raises(NotFoundError):
        assignments.get_owned_assignment(storage, 999, teacher)
