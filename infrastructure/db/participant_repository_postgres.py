from __future__ import annotations

from typing import Optional

import psycopg2
import psycopg2.errors

from domain.errors import DuplicateRecordError, StoreError
from domain.models import Participant
from domain.repositories import ParticipantRepository


class PostgresParticipantRepository(ParticipantRepository):
    """
    Postgres-backed implementation of `ParticipantRepository`.

    Schema (minimal):
      - user_id UUID   -- references accounts.id
      - room_id UUID   -- references rooms.id
      - PRIMARY KEY (user_id, room_id)
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
                    CREATE TABLE IF NOT EXISTS participants (
                        user_id UUID NOT NULL REFERENCES accounts (id),
                        room_id UUID NOT NULL REFERENCES rooms (id),
                        PRIMARY KEY (user_id, room_id)
                    )
                    """
                )
                conn.commit()

    def get(self, user_id: str, room_id: str) -> Optional[Participant]:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        SELECT user_id, room_id
                        FROM participants
                        WHERE user_id = %s AND room_id = %s
                        """,
                        (user_id, room_id),
                    )
                    row = cur.fetchone()
        except psycopg2.Error as exc:
            raise StoreError(str(exc)) from exc
        if not row:
            return None
        return Participant(user_id=str(row[0]), room_id=str(row[1]))

    def add_participant(self, participant: Participant) -> None:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "INSERT INTO participants (user_id, room_id) VALUES (%s, %s)",
                        (participant.user_id, participant.room_id),
                    )
                    conn.commit()
        except psycopg2.errors.UniqueViolation as exc:
            raise DuplicateRecordError(str(exc)) from exc
        except psycopg2.Error as exc:
            raise StoreError(str(exc)) from exc
