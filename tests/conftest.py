# tests/conftest.py

"""
Shared fixtures.

Every test gets its own database: in-memory SQLite by default, or the
server named by TEST_DATABASE_URL (e.g. a throwaway PostgreSQL database).
Seed rows are written through the repositories so server defaults and
constraints behave as in production.
"""

import os
from typing import AsyncGenerator

# Must be set before app.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import build_engine, build_session_factory, create_db_and_tables, drop_db_and_tables, get_session
from app.domains.corp import crud as corp_crud
from app.domains.corp import schemas as corp_schemas
from app.domains.shared import crud as shared_crud
from app.domains.shared import schemas as shared_schemas
from app.main import app as main_app

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


# --- database fixtures ---
@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh schema (tables and views) per test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        engine = build_engine(TEST_DATABASE_URL, poolclass=NullPool)
        await drop_db_and_tables(engine)
    await create_db_and_tables(engine)

    yield engine

    if not TEST_DATABASE_URL.startswith("sqlite"):
        await drop_db_and_tables(engine)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = build_session_factory(test_engine)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(test_engine) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with `get_session` bound to the test database."""
    session_factory = build_session_factory(test_engine)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    main_app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as ac:
        yield ac
    main_app.dependency_overrides.clear()


# --- seed data ---
@pytest_asyncio.fixture(scope="function")
async def cascade_org(db_session: AsyncSession) -> int:
    """A cascade organization (parent of the plants)."""
    return await corp_crud.organization.create(
        db_session, obj_in=corp_schemas.OrganizationCreate(name="Lower Cascade")
    )


@pytest_asyncio.fixture(scope="function")
async def hpp_org(db_session: AsyncSession, cascade_org: int) -> int:
    """A hydropower plant inside `cascade_org`."""
    return await corp_crud.organization.create(
        db_session,
        obj_in=corp_schemas.OrganizationCreate(name="HPP-1", parent_organization_id=cascade_org),
    )


@pytest_asyncio.fixture(scope="function")
async def operator_contact(db_session: AsyncSession, hpp_org: int) -> int:
    return await corp_crud.contact.create(
        db_session,
        obj_in=corp_schemas.ContactCreate(fio="Karimov Aziz", email="karimov@example.com", organization_id=hpp_org),
    )


@pytest_asyncio.fixture(scope="function")
async def operator_user(db_session: AsyncSession, operator_contact: int) -> int:
    """Application user backed by `operator_contact`."""
    return await shared_crud.user.create(
        db_session, obj_in=shared_schemas.UserCreate(login="operator", contact_id=operator_contact)
    )


@pytest_asyncio.fixture(scope="function")
async def pdf_file(db_session: AsyncSession, operator_user: int) -> int:
    category_id = await shared_crud.file_category.create(
        db_session, obj_in=shared_schemas.FileCategoryCreate(name="shutdowns", display_name="Shutdown reports")
    )
    return await shared_crud.file.create(
        db_session,
        obj_in=shared_schemas.FileCreate(
            file_name="act.pdf",
            object_key="shutdowns/act.pdf",
            category_id=category_id,
            mime_type="application/pdf",
            size_bytes=2048,
            uploaded_by_user_id=operator_user,
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def document_statuses(db_session: AsyncSession) -> None:
    await shared_crud.document_status.ensure_defaults(db_session)
