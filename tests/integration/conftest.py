"""
Integration test configuration.

Stub-backed flows need nothing beyond the fixtures in tests/conftest.py.
PostgreSQL-backed tests get a session-scoped PostgreSQL 16 container
(testcontainers) with the migrations applied once; the training tables
are truncated between tests.

Usage:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_example(postgres_repository: PostgresAssignmentRepository) -> None:
        ...

Note: Docker must be running for the PostgreSQL fixtures.
"""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from training_signoff.infrastructure.adapters.persistence import (
    PostgresAssignmentRepository,
)
from tests.integration.sql_helpers import execute_sql_file

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Session-scoped PostgreSQL 16 container, started once per run."""
    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def postgres_async_url(postgres_container: PostgresContainer) -> str:
    """Container URL in postgresql+asyncpg form."""
    sync_url = postgres_container.get_connection_url()
    async_url: str = sync_url.replace(
        "postgresql+psycopg2://", "postgresql+asyncpg://"
    ).replace("postgresql://", "postgresql+asyncpg://")
    return async_url


@pytest.fixture
async def session_factory(
    postgres_async_url: str,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a migrated database with empty training tables."""
    engine = create_async_engine(postgres_async_url, echo=False)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
            await execute_sql_file(session, path)
        await session.execute(
            text("TRUNCATE unit_signatures, progress_units, training_assignments")
        )
        await session.commit()

    yield factory

    await engine.dispose()


@pytest.fixture
def postgres_repository(
    session_factory: async_sessionmaker[AsyncSession],
) -> PostgresAssignmentRepository:
    return PostgresAssignmentRepository(session_factory)
