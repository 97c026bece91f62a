"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for race condition and timing tests.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresCredentialStore, PostgresOtpRepository
from tests.database import open_test_pool, truncate_all


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    pool = open_test_pool(max_size=20)
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
    truncate_all(pool)
    yield
