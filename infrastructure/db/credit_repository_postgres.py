from __future__ import annotations

from typing import List

import psycopg2

from domain.errors import StoreError
from domain.models import CreditTransfer
from domain.repositories import CreditRepository


class PostgresCreditRepository(CreditRepository):
    """Postgres-backed credit ledger (`credits` table, insert-only)."""

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
                    CREATE TABLE IF NOT EXISTS credits (
                        id BIGSERIAL PRIMARY KEY,
                        sender_id UUID NOT NULL,
                        receiver_id TEXT NOT NULL,
                        amount INTEGER NOT NULL,
                        reason TEXT NOT NULL,
                        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                    )
                    """
                )
                conn.commit()

    def append(self, transfer: CreditTransfer) -> None:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO credits (sender_id, receiver_id, amount, reason)
                        VALUES (%s, %s, %s, %s)
                        """,
                        (
                            transfer.sender_id,
                            transfer.receiver_id,
                            transfer.amount,
                            transfer.reason,
                        ),
                    )
                    conn.commit()
        except psycopg2.Error as exc:
            raise StoreError(str(exc)) from exc

    def list_for_receiver(self, receiver_id: str) -> List[CreditTransfer]:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        SELECT sender_id, receiver_id, amount, reason
                        FROM credits
                        WHERE receiver_id = %s
                        ORDER BY id
                        """,
                        (receiver_id,),
                    )
                    rows = cur.fetchall()
        except psycopg2.Error as exc:
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
