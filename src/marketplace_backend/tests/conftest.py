"""
Pytest configuration and fixtures for all tests.
"""

import os

# Settings, engine and cache are configured on import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DEBUG_MODE", "development")

import asyncio
import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace_backend.database import get_db
from marketplace_backend.interface.tokens import hash_password
from marketplace_backend.model import Base, Lesson, Module, Product, User
from marketplace_backend.permissions.principal import SELLER_ROLE, USER_ROLE
from marketplace_backend.redis_cache import get_redis_client
from marketplace_backend.server import app


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(autouse=True)
def clear_cache():
    cache = asyncio.run(get_redis_client())
    asyncio.run(cache.clear())
    yield


@pytest.fixture
def client(test_db: Session) -> Generator[TestClient, None, None]:
    """HTTP client sharing the test session with the fixtures."""

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(test_db: Session):
    def _make_user(name: str = "Buyer", role: str = USER_ROLE, email: str = None, password: str = "secret123") -> User:
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            password=hash_password(password),
            role=role,
            accessible_course_ids=[]
        )
        test_db.add(user)
        test_db.commit()
        test_db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def seller(make_user) -> User:
    return make_user(name="Seller", role=SELLER_ROLE)


@pytest.fixture
def buyer(make_user) -> User:
    return make_user(name="Buyer")


@pytest.fixture
def make_course(test_db: Session):
    def _make_course(owner: User, name: str = "Course", category: str = "Programming", modules: int = 2, lessons: int = 1) -> Product:
        course = Product(name=name, category=category, description=f"{name} description", user_id=owner.id, user_access_ids=[])
        test_db.add(course)
        test_db.flush()

        for m in range(modules):
            module = Module(title=f"{name} module {m + 1}", order=m, course_id=course.id)
            test_db.add(module)
            test_db.flush()
            for l in range(lessons):
                test_db.add(Lesson(title=f"{module.title} lesson {l + 1}", order=l, module_id=module.id))

        test_db.commit()
        test_db.refresh(course)
        return course
    return _make_course

