from __future__ import annotations

from typing import Optional

import psycopg2
import psycopg2.errors

from domain.errors import DuplicateRecordError, StoreError
from domain.models import Room
from domain.repositories import RoomRepository


class PostgresRoomRepository(RoomRepository):
    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("CREATE TABLE IF NOT EXISTS rooms (id UUID PRIMARY KEY)")
                conn.commit()

    def get_by_id(self, room_id: str) -> Optional[Room]:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT id FROM rooms WHERE id = %s", (room_id,))
                    row = cur.fetchone()
        except psycopg2.Error as exc:
            raise StoreError(str(exc)) from exc
        if not row:
            return None
        return Room(id=str(row[0]))

    def create_room(self, room: Room) -> None:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("INSERT INTO rooms (id) VALUES (%s)", (room.id,))
                    conn.commit()
        except psycopg2.errors.UniqueViolation as exc:
            raise DuplicateRecordError(str(exc)) from exc
        except psycopg2.Error as exc:
            raise StoreError(str(exc)) from exc
