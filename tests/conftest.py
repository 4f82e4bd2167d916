import os

os.environ["STORAGE_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from paperbank.main import app
from paperbank.models.orm import Base, LinkStatus
from paperbank.storage import MemoryStorage, SqlStorage, get_storage

PASSWORD = "secret123"


def mcq(marks=2, answer="4", **overrides):
    question = {
        "id": 11,
        "subject": "science",
        "chapter": "Motion",
        "topic": "Kinematics",
        "difficulty": "medium",
        "type": "mcq",
        "questionText": "What is 2 + 2?",
        "options": ["3", "4", "5", "6"],
        "answer": answer,
        "explanation": "Basic addition.",
        "marks": marks,
    }
    question.update(overrides)
    return question


def short_answer(marks=3, **overrides):
    question = {
        "id": 12,
        "subject": "science",
        "chapter": "Motion",
        "difficulty": "medium",
        "type": "short_answer",
        "questionText": "Define velocity.",
        "answer": "Rate of change of displacement.",
        "marks": marks,
    }
    question.update(overrides)
    return question


def paper_payload(questions=None, **overrides):
    payload = {
        "title": "Physics Chapter Test",
        "subject": "science",
        "chapter": "Motion",
        "type": "chapter_test",
        "difficulty": "medium",
        "duration": 45,
        "questionsList": questions if questions is not None else [mcq(marks=2), short_answer(marks=3)],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def sql_storage():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(bind=engine, autoflush=False, future=True)()
    try:
        yield SqlStorage(db)
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def teacher(storage):
    return storage.create_user(name="Ada Teacher", email="ada@school.org", password="x", role="teacher")


@pytest.fixture
def make_student(storage):
    def _make(name, teacher=None, status=LinkStatus.PENDING):
        student = storage.create_user(
            name=name, email=f"{name.lower().replace(' ', '.')}@school.org", password="x",
            role="student", roll_number=f"R-{name[:3].upper()}",
        )
        link = None
        if teacher is not None:
            link = storage.create_link(teacher_id=teacher.id, student_id=student.id, status=status.value)
        return student, link
    return _make


@pytest.fixture
def make_client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    clients = []

    def _make(raise_server_exceptions=True):
        client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


def register(client, email, role="teacher", **extra):
    payload = {"name": extra.pop("name", email.split("@")[0].title()), "email": email,
               "password": PASSWORD, "role": role}
    payload.update(extra)
    return client.post("/api/auth/register", json=payload)


def login(client, email):
    return client.post("/api/auth/login", json={"email": email, "password": PASSWORD})


@pytest.fixture
def teacher_client(make_client):
    client = make_client()
    r = register(client, "grace@school.org", name="Grace Hopper", institutionName="Hopper High")
    assert r.status_code == 201
    assert login(client, "grace@school.org").status_code == 200
    client.teacher_id = r.json()["userId"]
    return client
