"""
PostgreSQL repository adapters - Implement CredentialStore and OtpRepository.

This module provides the PostgreSQL implementation of the domain's
repository ports using psycopg3 with raw SQL.

Consistency Design:
-------------------
1. **email_registry**: every principal insert first claims its email with
   INSERT ... ON CONFLICT DO NOTHING in the same transaction. A concurrent
   claim blocks on the primary key until the winner commits, then inserts
   nothing. This makes "exactly one account per email across both
   partitions" a property of the store rather than of read-then-write checks.

2. **one_time_codes**: keyed by email, written with an upsert, so at most
   one code per email exists and the last issuance wins.

3. **consume**: SELECT ... FOR UPDATE on the matching code, then DELETE of
   every code for the email. A concurrent consumer blocks on the row lock
   and finds nothing once the winner commits, so a code verifies once.

All SQL uses parameterized queries. Table and filter fragments are only
ever taken from module-level constants.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.ports import OtpResult, UpsertOutcome
from src.domain.principals import (
    AdminKind,
    AdminPrincipal,
    ApprovalStatus,
    CustomerPrincipal,
    NewCustomer,
    Partition,
)

logger = logging.getLogger(__name__)

# src/adapters/repository/postgres.py -> <repo root>/migrations
MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"

_ADMIN_COLUMNS = "id, name, email, password_hash, kind, created_at, updated_at"
_CUSTOMER_COLUMNS = (
    "id, first_name, last_name, email, company_name, password_hash, email_verified, "
    "admitted, reviewed_by, rejection_reason, created_at, updated_at"
)

_PARTITION_TABLES = {
    Partition.ADMIN: "admins",
    Partition.CUSTOMER: "customers",
}

# Must agree with CustomerPrincipal.status
_STATUS_FILTERS = {
    ApprovalStatus.PENDING: "rejection_reason IS NULL AND NOT admitted",
    ApprovalStatus.APPROVED: "rejection_reason IS NULL AND admitted",
    ApprovalStatus.REJECTED: "rejection_reason IS NOT NULL",
}


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _admin_from_row(row: dict[str, Any]) -> AdminPrincipal:
    return AdminPrincipal(
        id=str(row["id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        kind=AdminKind(row["kind"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _customer_from_row(row: dict[str, Any]) -> CustomerPrincipal:
    return CustomerPrincipal(
        id=str(row["id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        company_name=row["company_name"],
        password_hash=row["password_hash"],
        email_verified=row["email_verified"],
        admitted=row["admitted"],
        reviewed_by=row["reviewed_by"],
        rejection_reason=row["rejection_reason"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresCredentialStore:
    """
    Implements CredentialStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool shared by the whole process
        """
        self._pool = pool

    def email_exists(self, email: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM email_registry WHERE email = %s", (email,))
            return cursor.fetchone() is not None

    def find_admin_by_email(self, email: str) -> AdminPrincipal | None:
        return self._fetch_admin(f"SELECT {_ADMIN_COLUMNS} FROM admins WHERE email = %s", email)

    def find_admin_by_id(self, admin_id: str) -> AdminPrincipal | None:
        parsed = _parse_uuid(admin_id)
        if parsed is None:
            return None
        return self._fetch_admin(f"SELECT {_ADMIN_COLUMNS} FROM admins WHERE id = %s", parsed)

    def find_customer_by_email(self, email: str) -> CustomerPrincipal | None:
        return self._fetch_customer(
            f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE email = %s", email
        )

    def find_customer_by_id(self, customer_id: str) -> CustomerPrincipal | None:
        parsed = _parse_uuid(customer_id)
        if parsed is None:
            return None
        return self._fetch_customer(
            f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE id = %s", parsed
        )

    def create_customer(self, customer: NewCustomer) -> CustomerPrincipal | None:
        """
        Claim the email and insert the customer in one transaction.

        Returns:
            The stored record, or None if the email is already claimed
        """
        insert_sql = f"""
            INSERT INTO customers (first_name, last_name, email, company_name, password_hash)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {_CUSTOMER_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            if not self._claim_email(cursor, customer.email, Partition.CUSTOMER):
                conn.rollback()
                return None
            cursor.execute(
                insert_sql,
                (
                    customer.first_name,
                    customer.last_name,
                    customer.email,
                    customer.company_name,
                    customer.password_hash,
                ),
            )
            row = cursor.fetchone()
            conn.commit()
            return _customer_from_row(row)

    def upsert_admin(
        self, name: str, email: str, password_hash: str, kind: AdminKind
    ) -> tuple[UpsertOutcome, AdminPrincipal | None]:
        """
        Create or update an administrative principal keyed by email.

        If the email claim fails, the registry row tells whether the owner
        is an admin (update in place) or a customer (conflict).
        """
        insert_sql = f"""
            INSERT INTO admins (name, email, password_hash, kind)
            VALUES (%s, %s, %s, %s)
            RETURNING {_ADMIN_COLUMNS}
        """
        update_sql = f"""
            UPDATE admins
            SET name = %s, password_hash = %s, kind = %s, updated_at = NOW()
            WHERE email = %s
            RETURNING {_ADMIN_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            if self._claim_email(cursor, email, Partition.ADMIN):
                cursor.execute(insert_sql, (name, email, password_hash, kind.value))
                row = cursor.fetchone()
                conn.commit()
                return UpsertOutcome.CREATED, _admin_from_row(row)

            cursor.execute("SELECT partition FROM email_registry WHERE email = %s", (email,))
            owner = cursor.fetchone()
            if owner is None or owner["partition"] != Partition.ADMIN.value:
                conn.rollback()
                return UpsertOutcome.CONFLICT, None

            cursor.execute(update_sql, (name, password_hash, kind.value, email))
            row = cursor.fetchone()
            conn.commit()
            if row is None:
                return UpsertOutcome.CONFLICT, None
            return UpsertOutcome.UPDATED, _admin_from_row(row)

    def list_admins(self) -> list[AdminPrincipal]:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(f"SELECT {_ADMIN_COLUMNS} FROM admins ORDER BY created_at")
            return [_admin_from_row(row) for row in cursor.fetchall()]

    def update_password(self, partition: Partition, email: str, password_hash: str) -> bool:
        table = _PARTITION_TABLES[partition]
        sql = f"UPDATE {table} SET password_hash = %s, updated_at = NOW() WHERE email = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (password_hash, email))
            conn.commit()
            return cursor.rowcount == 1

    def set_email_verified(self, email: str) -> bool:
        sql = """
            UPDATE customers
            SET email_verified = TRUE, updated_at = NOW()
            WHERE email = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            conn.commit()
            return cursor.rowcount == 1

    def update_admission(
        self,
        customer_id: str,
        admitted: bool,
        reviewed_by: str,
        rejection_reason: str | None,
    ) -> CustomerPrincipal | None:
        parsed = _parse_uuid(customer_id)
        if parsed is None:
            return None
        sql = f"""
            UPDATE customers
            SET admitted = %s, reviewed_by = %s, rejection_reason = %s, updated_at = NOW()
            WHERE id = %s
            RETURNING {_CUSTOMER_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (admitted, reviewed_by, rejection_reason, parsed))
            row = cursor.fetchone()
            conn.commit()
            return _customer_from_row(row) if row is not None else None

    def list_customers(
        self, status: ApprovalStatus | None, offset: int, limit: int
    ) -> tuple[list[CustomerPrincipal], int]:
        where = f"WHERE {_STATUS_FILTERS[status]}" if status is not None else ""
        page_sql = f"""
            SELECT {_CUSTOMER_COLUMNS} FROM customers
            {where}
            ORDER BY created_at DESC, id
            LIMIT %s OFFSET %s
        """
        count_sql = f"SELECT COUNT(*) AS total FROM customers {where}"

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(page_sql, (limit, offset))
            items = [_customer_from_row(row) for row in cursor.fetchall()]
            cursor.execute(count_sql)
            total = cursor.fetchone()["total"]
            return items, total

    def count_customers_by_status(self) -> dict[ApprovalStatus, int]:
        sql = f"""
            SELECT
                COUNT(*) FILTER (WHERE {_STATUS_FILTERS[ApprovalStatus.PENDING]}) AS pending,
                COUNT(*) FILTER (WHERE {_STATUS_FILTERS[ApprovalStatus.APPROVED]}) AS approved,
                COUNT(*) FILTER (WHERE {_STATUS_FILTERS[ApprovalStatus.REJECTED]}) AS rejected
            FROM customers
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql)
            row = cursor.fetchone()
            return {status: row[status.value] for status in ApprovalStatus}

    def _claim_email(self, cursor: Any, email: str, partition: Partition) -> bool:
        cursor.execute(
            """
            INSERT INTO email_registry (email, partition)
            VALUES (%s, %s)
            ON CONFLICT (email) DO NOTHING
            """,
            (email, partition.value),
        )
        return cursor.rowcount == 1

    def _fetch_admin(self, sql: str, key: Any) -> AdminPrincipal | None:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (key,))
            row = cursor.fetchone()
            return _admin_from_row(row) if row is not None else None

    def _fetch_customer(self, sql: str, key: Any) -> CustomerPrincipal | None:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (key,))
            row = cursor.fetchone()
            return _customer_from_row(row) if row is not None else None


class PostgresOtpRepository:
    """
    Implements OtpRepository protocol via psycopg3.

    Expiry is judged against the `now` supplied by the domain, so the
    ledger's clock is the single source of time for codes and grants.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def replace(self, email: str, code: str, expires_at: datetime) -> None:
        sql = """
            INSERT INTO one_time_codes (email, code, expires_at, created_at)
            VALUES (%s, %s, %s, NOW())
            ON CONFLICT (email) DO UPDATE
            SET code = EXCLUDED.code,
                expires_at = EXCLUDED.expires_at,
                created_at = NOW()
        """

        with self._pool.connection() as conn:
            conn.execute(sql, (email, code, expires_at))
            conn.commit()

    def consume(self, email: str, code: str, now: datetime) -> OtpResult:
        select_sql = """
            SELECT expires_at FROM one_time_codes
            WHERE email = %s AND code = %s
            FOR UPDATE
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(select_sql, (email, code))
            row = cursor.fetchone()
            if row is None:
                conn.commit()
                return OtpResult.NOT_FOUND

            # Matching code is scrubbed whether live or expired (no replay).
            cursor.execute("DELETE FROM one_time_codes WHERE email = %s", (email,))
            conn.commit()
            expires_at = row[0]
            return OtpResult.SUCCESS if now < expires_at else OtpResult.EXPIRED

    def delete_all(self, email: str) -> None:
        with self._pool.connection() as conn:
            conn.execute("DELETE FROM one_time_codes WHERE email = %s", (email,))
            conn.commit()

    def grant_reset(self, email: str, expires_at: datetime) -> None:
        sql = """
            INSERT INTO password_reset_grants (email, expires_at, created_at)
            VALUES (%s, %s, NOW())
            ON CONFLICT (email) DO UPDATE
            SET expires_at = EXCLUDED.expires_at, created_at = NOW()
        """

        with self._pool.connection() as conn:
            conn.execute(sql, (email, expires_at))
            conn.commit()

    def consume_reset_grant(self, email: str, now: datetime) -> bool:
        sql = "DELETE FROM password_reset_grants WHERE email = %s RETURNING expires_at"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
            conn.commit()
            return row is not None and now < row[0]


def run_migrations(pool: ConnectionPool, migrations_dir: Path = MIGRATIONS_DIR) -> None:
    """
    Execute every *.sql file of the migrations directory in filename order.

    Each file runs in its own transaction and must be idempotent
    (IF NOT EXISTS), since all of them run on every startup.

    Raises:
        RuntimeError: If a migration fails; the process must not start
    """
    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))
    if not sql_files:
        logger.info("No migration files found in %s", migrations_dir)
        return

    logger.info("Running %d migration(s)", len(sql_files))
    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
        except psycopg.Error as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
        logger.info("Migration complete: %s", sql_file.name)
