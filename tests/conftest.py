import os

# must be set before the app (and its settings / engine) is imported
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"
os.environ["INTERNAL_TOKEN"] = "test-token"

from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import Base, get_db
from main import app
from models.academic_sessions import AcademicSession
from models.classes import Class as ClassModel
from models.result_config import AssessmentComponent, GradingScale, ResultConfiguration, ResultPeriod
from models.results import Result as ResultModel
from models.schools import School
from models.student_classes import StudentClass
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def auth_headers(role="SCHOOL_ADMIN", school_id=1):
    headers = {"Authorization": "Bearer test-token", "X-User-Role": role}
    if school_id is not None:
        headers["X-School-Id"] = str(school_id)
    return headers


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def school(db):
    """
    Greenfield Academy, session 2024/2025.

    - JSS 1: Ada, Bola, Chidi (ACTIVE); JSS 2: Dayo (ACTIVE)
    - subjects: Mathematics, English Language
    - periods: First Term (w1), Second Term (w2), Third Term (w1)
    - components: CA1 (max 30), Exam (max 70)
    - scale: A 70-100, B 60-70, C 50-60, D 40-50, F 0-40
    """
    s = School(name="Greenfield Academy", subdomain="greenfield")
    other = School(name="Hillside College", subdomain="hillside")
    db.add_all([s, other])
    db.flush()

    session = AcademicSession(school_id=s.id, name="2024/2025",
                              start_date=date(2024, 9, 9), end_date=date(2025, 7, 18))
    next_session = AcademicSession(school_id=s.id, name="2025/2026")
    jss1 = ClassModel(school_id=s.id, name="JSS 1", section="A")
    jss2 = ClassModel(school_id=s.id, name="JSS 2", section="A")
    math = SubjectModel(school_id=s.id, name="Mathematics", code="MTH")
    english = SubjectModel(school_id=s.id, name="English Language", code="ENG")
    db.add_all([session, next_session, jss1, jss2, math, english])
    db.flush()

    ada = StudentModel(school_id=s.id, name="Ada Obi", email="ada@greenfield.edu.ng")
    bola = StudentModel(school_id=s.id, name="Bola Ade", email="bola@greenfield.edu.ng")
    chidi = StudentModel(school_id=s.id, name="Chidi Eze", email="chidi@greenfield.edu.ng")
    dayo = StudentModel(school_id=s.id, name="Dayo Lawal", email="dayo@greenfield.edu.ng")
    outsider = StudentModel(school_id=other.id, name="Efe Hill", email="efe@hillside.edu.ng")
    db.add_all([ada, bola, chidi, dayo, outsider])
    db.flush()

    db.add_all([
        StudentClass(student_id=ada.id, class_id=jss1.id, session_id=session.id, status="ACTIVE", roll_number="001"),
        StudentClass(student_id=bola.id, class_id=jss1.id, session_id=session.id, status="ACTIVE"),
        StudentClass(student_id=chidi.id, class_id=jss1.id, session_id=session.id, status="ACTIVE"),
        StudentClass(student_id=dayo.id, class_id=jss2.id, session_id=session.id, status="ACTIVE"),
    ])

    config = ResultConfiguration(school_id=s.id, session_id=session.id)
    config.periods = [
        ResultPeriod(name="First Term", weight=1),
        ResultPeriod(name="Second Term", weight=2),
        ResultPeriod(name="Third Term", weight=1),
    ]
    config.assessment_components = [
        AssessmentComponent(name="First CA", key="ca1", max_score=30),
        AssessmentComponent(name="Examination", key="exam", max_score=70),
    ]
    config.grading_scale = [
        GradingScale(min_score=70, max_score=100, grade="A", remark="Excellent"),
        GradingScale(min_score=60, max_score=70, grade="B", remark="Very Good"),
        GradingScale(min_score=50, max_score=60, grade="C", remark="Credit"),
        GradingScale(min_score=40, max_score=50, grade="D", remark="Pass"),
        GradingScale(min_score=0, max_score=40, grade="F", remark="Fail"),
    ]
    db.add(config)
    db.commit()

    first, second, third = config.periods
    ca1, exam = config.assessment_components
    return SimpleNamespace(
        id=s.id, other_id=other.id, session=session, next_session=next_session,
        jss1=jss1, jss2=jss2, math=math, english=english,
        ada=ada, bola=bola, chidi=chidi, dayo=dayo, outsider=outsider,
        config=config, first=first, second=second, third=third, ca1=ca1, exam=exam,
    )


@pytest.fixture
def add_result(db):
    def _add(student, subject, period, session, total, grade=None, approved=False, published=False):
        result = ResultModel(
            student_id=student.id, subject_id=subject.id, period_id=period.id, session_id=session.id,
            total=total, grade=grade, is_approved=approved, published=published,
        )
        db.add(result)
        db.commit()
        return result
    return _add


@pytest.fixture
def first_term_results(school, add_result):
    """Averages: Ada 92, Bola 78, Chidi 78, Dayo (JSS 2) 50."""
    s = school
    rows = [
        (s.ada, s.math, 90), (s.ada, s.english, 94),
        (s.bola, s.math, 78), (s.bola, s.english, 78),
        (s.chidi, s.math, 80), (s.chidi, s.english, 76),
        (s.dayo, s.math, 50), (s.dayo, s.english, 50),
    ]
    return [add_result(student, subject, s.first, s.session, total) for student, subject, total in rows]


@pytest.fixture
def headers():
    return auth_headers
