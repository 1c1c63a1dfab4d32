from __future__ import annotations

import sqlite3
from typing import Optional

from domain.errors import DuplicateRecordError, StoreError
from domain.models import Account
from domain.repositories import AccountRepository


class SqliteAccountRepository(AccountRepository):
    """
    SQLite-backed implementation of `AccountRepository`.

    Manages the `accounts` table shared with the agent runtime. The table
    is created if needed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    name TEXT,
                    email TEXT NOT NULL,
                    register_complete INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Account:
        return Account(
            id=str(row[0]),
            name=row[1],
            email=row[2],
            register_complete=bool(row[3]),
        )

    def get_by_id(self, account_id: str) -> Optional[Account]:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    "SELECT id, name, email, register_complete FROM accounts WHERE id = ?",
                    (account_id,),
                )
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        if not row:
            return None
        return self._to_domain(row)

    def create_account(self, account: Account) -> None:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT INTO accounts (id, name, email, register_complete)
                    VALUES (?, ?, ?, ?)
                    """,
                    (account.id, account.name, account.email, int(account.register_complete)),
                )
                conn.commit()
        except sqlite3.IntegrityError as exc:
            raise DuplicateRecordError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
