import pytest

from conftest import paper_payload
from paperbank.core.errors import AuthorizationError, NotFoundError, ValidationError
from paperbank.models.orm import LinkStatus
from paperbank.services import approvals, assembler


def test_approving_adds_student_to_roster_once(storage, teacher, make_student):
    student, link = make_student("Alan Turing", teacher)

    updated = approvals.decide_link(storage, link.id, LinkStatus.APPROVED, teacher)

    assert updated.status == "approved"
    roster = approvals.approved_students(storage, teacher.id)
    assert [s.id for s in roster] == [student.id]


def test_duplicate_approved_links_list_the_student_once(storage, teacher, make_student):
    student, _ = make_student("Alan Turing", teacher, status=LinkStatus.APPROVED)
    storage.create_link(teacher_id=teacher.id, student_id=student.id, status="approved")

    assert [s.id for s in approvals.approved_students(storage, teacher.id)] == [student.id]


def test_rejecting_keeps_student_off_roster(storage, teacher, make_student):
    _, link = make_student("Alan Turing", teacher)

    approvals.decide_link(storage, link.id, LinkStatus.REJECTED, teacher)

    assert approvals.approved_students(storage, teacher.id) == []
    assert approvals.pending_requests(storage, teacher.id) == []


def test_pending_is_not_a_decision(storage, teacher, make_student):
    _, link = make_student("Alan Turing", teacher)
    with pytest.raises(ValidationError):
        approvals.decide_link(storage, link.id, LinkStatus.PENDING, teacher)


def test_last_decision_wins_by_default(storage, teacher, make_student, caplog):
    student, link = make_student("Alan Turing", teacher)
    approvals.decide_link(storage, link.id, LinkStatus.APPROVED, teacher, final=False)

    with caplog.at_level("WARNING", logger="paperbank.services.approvals"):
        approvals.decide_link(storage, link.id, LinkStatus.REJECTED, teacher, final=False)

    assert storage.get_link(link.id).status == "rejected"
    assert student.id not in approvals.approved_student_ids(storage, teacher.id)
    assert "re-decided" in caplog.text


def test_final_decisions_cannot_be_changed(storage, teacher, make_student):
    _, link = make_student("Alan Turing", teacher)
    approvals.decide_link(storage, link.id, LinkStatus.APPROVED, teacher, final=True)

    with pytest.raises(ValidationError):
        approvals.decide_link(storage, link.id, LinkStatus.REJECTED, teacher, final=True)
    assert storage.get_link(link.id).status == "approved"


def test_only_the_addressed_teacher_decides(storage, teacher, make_student):
    other = storage.create_user(name="Other", email="other@school.org", password="x", role="teacher")
    _, link = make_student("Alan Turing", teacher)

    with pytest.raises(AuthorizationError):
        approvals.decide_link(storage, link.id, LinkStatus.APPROVED, other)
    assert storage.get_link(link.id).status == "pending"


def test_unknown_link(storage, teacher):
    with pytest.raises(NotFoundError):
        approvals.decide_link(storage, 404, LinkStatus.APPROVED, teacher)


def test_pending_requests_are_per_teacher(storage, teacher, make_student):
    other = storage.create_user(name="Other", email="other@school.org", password="x", role="teacher")
    mine, _ = make_student("Alan Turing", teacher)
    make_student("Barbara Liskov", other)

    pending = approvals.pending_requests(storage, teacher.id)

    assert [student.id for _, student in pending] == [mine.id]


def test_dashboard_stats(storage, teacher, make_student):
    approved, _ = make_student("Alan Turing", teacher, status=LinkStatus.APPROVED)
    make_student("Barbara Liskov", teacher)
    make_student("Claude Shannon", teacher)
    test = assembler.create_test(storage, paper_payload(), teacher)
    storage.create_assignments([{
        "test_id": test.id, "student_id": approved.id,
        "assigned_by_teacher_id": teacher.id, "status": "assigned",
    }])

    stats = approvals.dashboard_stats(storage, teacher.id)

    assert stats.total_students == 1
    assert stats.pending_approvals == 2
    assert stats.tests_created == 1
    assert stats.tests_assigned == 1
