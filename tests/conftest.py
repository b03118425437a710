import os

# ✅ 설정 모듈 import 전에 테스트용 환경변수 지정
os.environ.setdefault("DB_DSN", "sqlite://")
os.environ.setdefault("GRADING_API_TOKEN", "test-token")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import Base, get_db
from models.seasons import Season
from models.subjects import Subject
from models.chapters import Chapter
from models.parts import Part
from models.exercises import Exercise
from models.students import Student
from models import grades  # noqa: F401

MATH, PHYSICS = 1, 2
SEASON_1, SEASON_2 = 1, 2
# 연습문제: E1/E2 = 수학 1시즌, E3 = 물리 1시즌, E4 = 수학 2시즌(아랍어 라벨), E5 = 수학 1시즌 배점 5
E1, E2, E3, E4, E5 = 11, 12, 13, 14, 15
CLASS_A, CLASS_B = 10, 11
AUTH_HEADERS = {"Authorization": "Bearer test-token", "X-Grader-Id": "teacher-7"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    db.add_all([
        Season(id=SEASON_1, name_en="Season 1", name_ar="الموسم الأول", name_ku="وەرزی یەکەم",
               aliases=["S1"], description="First season", order=1),
        Season(id=SEASON_2, name_en="Season 2", name_ar="الموسم الثاني", name_ku="وەرزی دووەم",
               aliases=[], description="Second season", order=2),
        Subject(id=MATH, title="Math"),
        Subject(id=PHYSICS, title="Physics"),
        Chapter(id=1, title="Numbers", subject_id=MATH, season_label="Season 1", order=1),
        Chapter(id=2, title="Motion", subject_id=PHYSICS, season_label="season 1", order=1),
        Chapter(id=3, title="Geometry", subject_id=MATH, season_label="الموسم الثاني", order=2),
        Part(id=1, title="Addition", chapter_id=1, order=1),
        Part(id=2, title="Speed", chapter_id=2, order=1),
        Part(id=3, title="Triangles", chapter_id=3, order=1),
        Exercise(id=E1, name="Add small numbers", part_id=1, degree=10),
        Exercise(id=E2, name="Add large numbers", part_id=1, degree=10),
        Exercise(id=E3, name="Average speed", part_id=2, degree=10),
        Exercise(id=E4, name="Angles", part_id=3, degree=10),
        Exercise(id=E5, name="Carry digits", part_id=1, degree=5),
        Student(id=1, full_name="Aram Karim", student_number="ST-001", class_id=CLASS_A),
        Student(id=2, full_name="Lana Omar", student_number="ST-002", class_id=CLASS_A),
        Student(id=3, full_name="Sara Ali", student_number="ST-003", class_id=CLASS_B),
    ])
    db.commit()
    return db


@pytest.fixture
def client(seeded, session_factory):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
