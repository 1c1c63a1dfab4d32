from __future__ import annotations

from typing import Optional

import psycopg2
import psycopg2.errors

from domain.errors import DuplicateRecordError, StoreError
from domain.models import Account
from domain.repositories import AccountRepository


class PostgresAccountRepository(AccountRepository):
    """
    Postgres-backed implementation of `AccountRepository`.

    `db_params` is passed straight to `psycopg2.connect`, typically
    `{"dsn": STORE_URL, "password": STORE_SERVICE_KEY}`.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS accounts (
                        id UUID PRIMARY KEY,
                        name TEXT,
                        email TEXT NOT NULL,
                        register_complete BOOLEAN NOT NULL DEFAULT FALSE
                    )
                    """
                )
                conn.commit()

    def get_by_id(self, account_id: str) -> Optional[Account]:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT id, name, email, register_complete FROM accounts WHERE id = %s",
                        (account_id,),
                    )
                    row = cur.fetchone()
        except psycopg2.Error as exc:
            raise StoreError(str(exc)) from exc
        if not row:
            return None
        return Account(
            id=str(row[0]),
            name=row[1],
            email=row[2],
            register_complete=bool(row[3]),
        )

    def create_account(self, account: Account) -> None:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO accounts (id, name, email, register_complete)
                        VALUES (%s, %s, %s, %s)
                        """,
                        (account.id, account.name, account.email, account.register_complete),
                    )
                    conn.commit()
        except psycopg2.errors.UniqueViolation as exc:
            raise DuplicateRecordError(str(exc)) from exc
        except psycopg2.Error as exc:
            raise StoreError(str(exc)) from exc
