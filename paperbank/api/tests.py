import re
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from paperbank.core.security import require_teacher
from paperbank.models.orm import User
from paperbank.models.schemas import (
    AssignmentOut,
    AssignRequest,
    AssignResult,
    CamelModel,
    PDFOptions,
    TestCreate,
    TestOut,
    TestUpdate,
)
from paperbank.services import assembler
from paperbank.services.assignments import assign_test
from paperbank.services.renderer import render_test_pdf
from paperbank.storage import Storage, get_storage

router = APIRouter()


class TestList(CamelModel):
    __test__ = False

    tests: List[TestOut]


class TestEnvelope(CamelModel):
    __test__ = False

    test: TestOut


class AssignmentList(CamelModel):
    assignments: List[AssignmentOut]


class Message(CamelModel):
    message: str


def pdf_filename(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return f"{slug or 'test'}.pdf"


@router.get("", response_model=TestList)
def list_tests(teacher: User = Depends(require_teacher), storage: Storage = Depends(get_storage)):
    tests = storage.get_tests_by_teacher(teacher.id)
    return TestList(tests=[TestOut.model_validate(t) for t in tests])


@router.get("/{test_id}", response_model=TestEnvelope)
def get_test(test_id: int, teacher: User = Depends(require_teacher), storage: Storage = Depends(get_storage)):
    test = assembler.get_owned_test(storage, test_id, teacher)
    return TestEnvelope(test=TestOut.model_validate(test))


@router.post("", response_model=TestEnvelope, status_code=201)
def create_test(payload: TestCreate, teacher: User = Depends(require_teacher),
                storage: Storage = Depends(get_storage)):
    test = assembler.create_test(storage, payload, teacher)
    return TestEnvelope(test=TestOut.model_validate(test))


@router.put("/{test_id}", response_model=TestEnvelope)
def update_test(test_id: int, payload: TestUpdate, teacher: User = Depends(require_teacher),
                storage: Storage = Depends(get_storage)):
    test = assembler.get_owned_test(storage, test_id, teacher, action="edit")
    updated = assembler.apply_update(storage, test, payload)
    return TestEnvelope(test=TestOut.model_validate(updated))


@router.delete("/{test_id}", response_model=Message)
def delete_test(test_id: int, teacher: User = Depends(require_teacher), storage: Storage = Depends(get_storage)):
    assembler.get_owned_test(storage, test_id, teacher, action="delete")
    storage.delete_test(test_id)
    return Message(message="Test deleted successfully")


@router.post("/{test_id}/pdf", response_class=Response,
             responses={200: {"content": {"application/pdf": {}}}})
def export_pdf(test_id: int, options: Optional[PDFOptions] = None, teacher: User = Depends(require_teacher),
               storage: Storage = Depends(get_storage)):
    test = assembler.get_owned_test(storage, test_id, teacher)
    institution = storage.get_institution(teacher.institution_id) if teacher.institution_id else None
    pdf = render_test_pdf(
        TestOut.model_validate(test),
        options or PDFOptions(),
        teacher_name=teacher.name,
        institution_name=institution.name if institution else "",
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(test.title)}"'},
    )


@router.post("/{test_id}/assign", response_model=AssignResult, status_code=201)
def assign(test_id: int, payload: AssignRequest, teacher: User = Depends(require_teacher),
           storage: Storage = Depends(get_storage)):
    test = assembler.get_owned_test(storage, test_id, teacher, action="assign")
    count = assign_test(storage, test, teacher, payload.student_ids, payload.due_date, payload.notes)
    return AssignResult(message="Test assigned successfully", count=count)


@router.get("/{test_id}/assignments", response_model=AssignmentList)
def list_assignments(test_id: int, teacher: User = Depends(require_teacher),
                     storage: Storage = Depends(get_storage)):
    assembler.get_owned_test(storage, test_id, teacher)
    records = storage.get_assignments_by_test(test_id)
    return AssignmentList(assignments=[AssignmentOut.model_validate(r) for r in records])
