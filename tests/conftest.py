"""
Solo Parent Backend: Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets its own in-memory SQLite Database (aiosqlite, one
       shared connection through StaticPool) with the full schema created.

Fixture Hierarchy:
    Function-scoped:
    ├── database:        fresh in-memory Database with every table
    ├── seed:            Seeder writing fixture rows in committed sessions
    ├── session:         AsyncSession on `database` for service tests
    ├── mock_db_session: AsyncMock session for pure unit tests
    ├── mail:            AsyncMock mail collaborator (send → True)
    └── test_client:     httpx AsyncClient on a fresh app bound to `database`

Seed before the first query on `session`: seeding commits on the shared
connection.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SMTP_HOST"] = ""
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["LOCK_RETRY_WAIT_SECONDS"] = "0"

from datetime import date, time
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from soloparent.database import Database
from soloparent.models.event import Event
from soloparent.models.user import Admin, IdentifyingInformation, Superadmin, User
from soloparent.services.account_service import hash_password
from soloparent.services.document_registry import DocumentType

DEFAULT_PASSWORD = "secret123"


class Seeder:
    """Writes fixture rows, each call in its own committed session."""

    def __init__(self, database: Database):
        self.database = database

    async def save(self, *rows):
        async with self.database.session() as session:
            session.add_all(rows)
            await session.flush()
        return rows

    async def user(
        self,
        email: str = "maria@example.com",
        status: str = "Pending",
        code_id: Optional[str] = "SP-0001",
        civil_status: Optional[str] = "single",
        barangay: str = "San Roque",
        first_name: str = "Maria",
        last_name: str = "Santos",
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            email=email,
            password=hash_password(password),
            name=f"{first_name} {last_name}",
            code_id=code_id,
            status=status,
        )
        rows = [user]
        if code_id:
            rows.append(
                IdentifyingInformation(
                    code_id=code_id,
                    first_name=first_name,
                    last_name=last_name,
                    barangay=barangay,
                    civil_status=civil_status,
                )
            )
        await self.save(*rows)
        return user

    async def admin(
        self, email: str = "admin@sanroque.gov", barangay: str = "San Roque", password: str = DEFAULT_PASSWORD
    ) -> Admin:
        admin = Admin(email=email, password=hash_password(password), barangay=barangay)
        await self.save(admin)
        return admin

    async def superadmin(self, email: str = "mswdo@city.gov", password: str = DEFAULT_PASSWORD) -> Superadmin:
        superadmin = Superadmin(email=email, password=hash_password(password))
        await self.save(superadmin)
        return superadmin

    async def document(
        self, document_type: DocumentType, code_id: str = "SP-0001", status: str = "Pending"
    ):
        row = document_type.model(
            code_id=code_id,
            file_name=f"https://files.example.com/{code_id}/{document_type.value}.pdf",
            display_name=document_type.display_name,
            status=status,
        )
        await self.save(row)
        return row

    async def event(
        self,
        title: str = "Parenting Seminar",
        start_date: date = date(2030, 5, 10),
        start_time: time = time(10, 0),
        end_time: time = time(11, 0),
        status: str = "Upcoming",
    ) -> Event:
        event = Event(
            title=title,
            start_date=start_date,
            start_time=start_time,
            end_time=end_time,
            status=status,
            visibility="everyone",
            barangay="All",
            image="https://img.example.com/seminar.png",
        )
        await self.save(event)
        return event


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.create_schema()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session_factory() as db_session:
        yield db_session


@pytest.fixture
def seed(database):
    return Seeder(database)


@pytest.fixture
def mock_db_session():
    """
    Mock async session for tests that never touch SQL.

    Usage:
        result = await run_with_lock_retry(mock_db_session, unit, operation="...")
        mock_db_session.commit.assert_awaited_once()
    """
    db_session = AsyncMock()
    db_session.execute = AsyncMock()
    db_session.flush = AsyncMock()
    db_session.commit = AsyncMock()
    db_session.rollback = AsyncMock()
    db_session.close = AsyncMock()
    db_session.add = MagicMock()
    return db_session


# ══════════════════════════════════════════════════════════════════════════
# Collaborator Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mail():
    """Replaces the mail collaborator wherever it is used; send() reports delivery."""
    mock_mail = MagicMock()
    mock_mail.send = AsyncMock(return_value=True)
    with patch("soloparent.services.workflow.mail_service", mock_mail), \
         patch("soloparent.services.account_service.mail_service", mock_mail):
        yield mock_mail


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient on a freshly created app whose state.db is the test
    database. ASGITransport skips the lifespan, so the handle is never
    replaced or disposed by the app.
    """
    from soloparent.main import create_app

    app = create_app()
    app.state.db = database
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
