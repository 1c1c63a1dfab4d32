from __future__ import annotations

import sqlite3
from typing import Optional

from domain.errors import DuplicateRecordError, StoreError
from domain.models import Participant
from domain.repositories import ParticipantRepository


class SqliteParticipantRepository(ParticipantRepository):
    """
    SQLite-backed implementation of `ParticipantRepository`.

    The composite primary key on (user_id, room_id) rejects duplicate
    memberships even if two requests race past the existence check.
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
                CREATE TABLE IF NOT EXISTS participants (
                    user_id TEXT NOT NULL,
                    room_id TEXT NOT NULL,
                    PRIMARY KEY (user_id, room_id)
                )
                """
            )
            conn.commit()

    def get(self, user_id: str, room_id: str) -> Optional[Participant]:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT user_id, room_id
                    FROM participants
                    WHERE user_id = ? AND room_id = ?
                    """,
                    (user_id, room_id),
                )
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        if not row:
            return None
        return Participant(user_id=str(row[0]), room_id=str(row[1]))

    def add_participant(self, participant: Participant) -> None:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    "INSERT INTO participants (user_id, room_id) VALUES (?, ?)",
                    (participant.user_id, participant.room_id),
                )
                conn.commit()
        except sqlite3.IntegrityError as exc:
            raise DuplicateRecordError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
