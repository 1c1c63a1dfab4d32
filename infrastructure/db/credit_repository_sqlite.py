from __future__ import annotations

import sqlite3
from typing import List

from domain.errors import StoreError
from domain.models import CreditTransfer
from domain.repositories import CreditRepository


class SqliteCreditRepository(CreditRepository):
    """
    SQLite-backed credit ledger.

    Rows are only ever inserted; the autoincrement id preserves the order
    in which transfers were recorded.
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
                CREATE TABLE IF NOT EXISTS credits (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sender_id TEXT NOT NULL,
                    receiver_id TEXT NOT NULL,
                    amount INTEGER NOT NULL,
                    reason TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.commit()

    def append(self, transfer: CreditTransfer) -> None:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT INTO credits (sender_id, receiver_id, amount, reason)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        transfer.sender_id,
                        transfer.receiver_id,
                        transfer.amount,
                        transfer.reason,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def list_for_receiver(self, receiver_id: str) -> List[CreditTransfer]:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT sender_id, receiver_id, amount, reason
                    FROM credits
                    WHERE receiver_id = ?
                    ORDER BY id
                    """,
                    (receiver_id,),
                )
                rows = cur.fetchall()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        return [
            CreditTransfer(
                sender_id=str(row[0]),
                receiver_id=str(row[1]),
                amount=int(row[2]),
                reason=row[3],
            )
            for row in rows
        ]
