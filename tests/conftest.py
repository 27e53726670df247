"""Shared fixtures: in-memory SQLite database, factories and an API client."""

import os

# must be set before the app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("REORDER_VALIDATION", "lenient")

from decimal import Decimal
from typing import Callable, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, configure_engine, get_db
from app.core.hasher import PasswordHelper
from app.core.security import jwt_manager, token_blacklist
from app.models import Course, Module, User, UserCourse
from app.services.certificate import get_certificate_issuer
from main import app

TEST_PASSWORD = "secret123"
# hashing once keeps factories fast
TEST_PASSWORD_HASH = PasswordHelper.hash_password(TEST_PASSWORD)

engine = configure_engine(
    create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeCertificateIssuer:
    """Records issued certificates instead of rendering PDFs."""

    def __init__(self):
        self.issued: List[Tuple[int, int]] = []

    def issue(self, user: User, course: Course) -> str:
        self.issued.append((user.id, course.id))
        return f"/storage/certificates/certificate_{user.id}_{course.id}.pdf"


class FailingCertificateIssuer:
    def issue(self, user: User, course: Course) -> str:
        raise RuntimeError("renderer unavailable")


@pytest.fixture
def db() -> Session:
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clear_token_blacklist():
    token_blacklist._memory_blacklist.clear()
    yield
    token_blacklist._memory_blacklist.clear()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    def _make_user(
        username: str = "alice",
        balance: Decimal = Decimal("0"),
        is_admin: bool = False,
    ) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=TEST_PASSWORD_HASH,
            first_name=username.capitalize(),
            last_name="Tester",
            balance=balance,
            is_admin=is_admin,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_course(db: Session) -> Callable[..., Course]:
    def _make_course(
        title: str = "Intro to Databases",
        price: Decimal = Decimal("50"),
        instructor: str = "Dr. Codd",
        topics: Optional[List[str]] = None,
    ) -> Course:
        course = Course(
            title=title,
            description=f"{title} description",
            instructor=instructor,
            topics=topics if topics is not None else ["sql"],
            price=price,
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _make_course


@pytest.fixture
def make_module(db: Session) -> Callable[..., Module]:
    def _make_module(course: Course, order: int, title: Optional[str] = None) -> Module:
        module = Module(
            course_id=course.id,
            title=title or f"Module {order}",
            description="",
            order=order,
        )
        db.add(module)
        db.commit()
        db.refresh(module)
        return module

    return _make_module


@pytest.fixture
def enroll(db: Session) -> Callable[[User, Course], UserCourse]:
    def _enroll(user: User, course: Course) -> UserCourse:
        enrollment = UserCourse(user_id=user.id, course_id=course.id)
        db.add(enrollment)
        db.commit()
        db.refresh(enrollment)
        return enrollment

    return _enroll


@pytest.fixture
def certificate_issuer() -> FakeCertificateIssuer:
    return FakeCertificateIssuer()


@pytest.fixture
def client(db: Session, certificate_issuer: FakeCertificateIssuer) -> TestClient:
    """API client bound to the test session. The lifespan is not run."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_certificate_issuer] = lambda: certificate_issuer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], dict]:
    def _auth_headers(user: User) -> dict:
        token = jwt_manager.create_access_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
