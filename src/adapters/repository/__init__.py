"""Repository adapters - Database implementations."""

from .postgres import PostgresCredentialStore, PostgresOtpRepository, run_migrations

__all__ = ["PostgresCredentialStore", "PostgresOtpRepository", "run_migrations"]
