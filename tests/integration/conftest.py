"""
Shared fixtures for integration tests against PostgreSQL.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresCredentialStore, PostgresOtpRepository
from tests.database import open_test_pool, truncate_all


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    pool = open_test_pool()
    yield pool
    pool.close()


@pytest.fixture
def pg_store(pool: ConnectionPool) -> PostgresCredentialStore:
    return PostgresCredentialStore(pool)


@pytest.fixture
def pg_otp_repository(pool: ConnectionPool) -> PostgresOtpRepository:
    return PostgresOtpRepository(pool)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty every table before each test."""
    truncate_all(pool)
    yield
