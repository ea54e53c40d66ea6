import os
from typing import AsyncGenerator, Dict

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from enrollment_admin.core.models import Course, Enrollment, Student
from enrollment_admin.db.session import Base, get_db
from enrollment_admin.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """One in-memory SQLite database per test; StaticPool keeps every session on the same connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def seeded(db_session: AsyncSession) -> Dict[str, Dict[str, int]]:
    """
    Four students, three courses and seven enrollments (ids 1..7 in insert order):

    id  student              course  year       sem  status
    1   Alice Wijaya         IF101   2024/2025  1    APPROVED
    2   Alice Wijaya         IF102   2024/2025  2    DRAFT
    3   Budi Santoso         IF101   2025/2026  1    APPROVED
    4   Budi Santoso         MA201   2025/2026  2    SUBMITTED
    5   Citra Lestari        IF102   2023/2024  1    APPROVED
    6   Citra Lestari        MA201   2025/2026  1    REJECTED
    7   Dewi_Rahma           IF101   2026/2027  2    APPROVED
    """
    students = {
        "alice": Student(nim="2021000001", name="Alice Wijaya", email="alice@example.com"),
        "budi": Student(nim="2021000002", name="Budi Santoso", email="budi@example.com"),
        "citra": Student(nim="2021000003", name="Citra Lestari", email="citra@example.com"),
        "dewi": Student(nim="2021000004", name="Dewi_Rahma", email="dewi@example.com"),
    }
    courses = {
        "IF101": Course(code="IF101", name="Algorithms", credits=3),
        "IF102": Course(code="IF102", name="Databases", credits=4),
        "MA201": Course(code="MA201", name="Calculus", credits=2),
    }
    db_session.add_all(list(students.values()) + list(courses.values()))
    await db_session.flush()

    rows = [
        ("alice", "IF101", "2024/2025", 1, "APPROVED"),
        ("alice", "IF102", "2024/2025", 2, "DRAFT"),
        ("budi", "IF101", "2025/2026", 1, "APPROVED"),
        ("budi", "MA201", "2025/2026", 2, "SUBMITTED"),
        ("citra", "IF102", "2023/2024", 1, "APPROVED"),
        ("citra", "MA201", "2025/2026", 1, "REJECTED"),
        ("dewi", "IF101", "2026/2027", 2, "APPROVED"),
    ]
    for student_key, course_code, year, semester, status in rows:
        db_session.add(
            Enrollment(
                student_id=students[student_key].id,
                course_id=courses[course_code].id,
                academic_year=year,
                semester=semester,
                status=status,
            )
        )
        await db_session.flush()
    await db_session.commit()

    return {
        "students": {k: s.id for k, s in students.items()},
        "courses": {k: c.id for k, c in courses.items()},
    }
