import os

os.environ["TESTING"] = "True"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

import skillportal.models  # noqa: F401
from skillportal.core.database import Base, SessionLocal, engine
from skillportal.core.security import create_access_token, get_password_hash
from skillportal.main import app
from skillportal.models import Assignment, Course, Enrollment, Skill, User, UserRole


API = "/api/v1"
PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(user: User) -> dict:
    token = create_access_token(
        subject=str(user.id),
        additional_claims={"role": user.role, "email": user.email}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(role: str = UserRole.STUDENT.value, name: str = None, email: str = None) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            hashed_password=PASSWORD_HASH,
            role=role,
            is_active=True
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN.value)


@pytest.fixture
def student(make_user):
    return make_user(UserRole.STUDENT.value)


@pytest.fixture
def make_course(db):
    def factory(title: str = "Python Basics", published: bool = True, skill: Skill = None, creator: User = None) -> Course:
        course = Course(
            title=title,
            description=f"{title} description",
            skill_id=skill.id if skill else None,
            created_by_id=creator.id if creator else None,
            published_at=datetime.utcnow() if published else None
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return factory


@pytest.fixture
def make_assignment(db):
    def factory(course: Course, title: str = "Homework", max_points: int = 100, due_in: timedelta = timedelta(days=7)) -> Assignment:
        assignment = Assignment(
            course_id=course.id,
            title=title,
            description=f"{title} description",
            due_date=datetime.utcnow() + due_in,
            max_points=max_points
        )
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return assignment

    return factory


@pytest.fixture
def enroll(db):
    def factory(user: User, course: Course) -> Enrollment:
        enrollment = Enrollment(user_id=user.id, course_id=course.id, status="enrolled", progress=0)
        db.add(enrollment)
        db.commit()
        db.refresh(enrollment)
        return enrollment

    return factory
