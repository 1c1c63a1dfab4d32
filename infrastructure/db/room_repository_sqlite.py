from __future__ import annotations

import sqlite3
from typing import Optional

from domain.errors import DuplicateRecordError, StoreError
from domain.models import Room
from domain.repositories import RoomRepository


class SqliteRoomRepository(RoomRepository):
    """SQLite-backed implementation of `RoomRepository` (`rooms` table)."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("CREATE TABLE IF NOT EXISTS rooms (id TEXT PRIMARY KEY)")
            conn.commit()

    def get_by_id(self, room_id: str) -> Optional[Room]:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute("SELECT id FROM rooms WHERE id = ?", (room_id,))
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        if not row:
            return None
        return Room(id=str(row[0]))

    def create_room(self, room: Room) -> None:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute("INSERT INTO rooms (id) VALUES (?)", (room.id,))
                conn.commit()
        except sqlite3.IntegrityError as exc:
            raise DuplicateRecordError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
