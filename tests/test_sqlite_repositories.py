import os
import tempfile
import unittest

from application.bootstrap import ensure_account, ensure_participant, ensure_room
from application.services import get_credit_balance
from domain.errors import DuplicateRecordError
from domain.models import Account, CreditTransfer, Participant, Room
from infrastructure.db.account_repository_sqlite import SqliteAccountRepository
from infrastructure.db.credit_repository_sqlite import SqliteCreditRepository
from infrastructure.db.participant_repository_sqlite import SqliteParticipantRepository
from infrastructure.db.room_repository_sqlite import SqliteRoomRepository


class SqliteRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self._tmpdir.name, "credits.db")
        self.accounts = SqliteAccountRepository(self.db_path)
        self.rooms = SqliteRoomRepository(self.db_path)
        self.participants = SqliteParticipantRepository(self.db_path)
        self.credits = SqliteCreditRepository(self.db_path)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_account_round_trip(self):
        self.accounts.create_account(Account.for_discord_name("acc-1", "alice"))

        account = self.accounts.get_by_id("acc-1")
        self.assertEqual(account.name, "alice")
        self.assertEqual(account.email, "alice@discord")
        self.assertTrue(account.register_complete)
        self.assertIsNone(self.accounts.get_by_id("acc-2"))

    def test_duplicate_inserts_raise_duplicate_record(self):
        self.accounts.create_account(Account.for_discord_name("acc-1", "alice"))
        self.rooms.create_room(Room(id="room-1"))
        self.participants.add_participant(Participant(user_id="acc-1", room_id="room-1"))

        with self.assertRaises(DuplicateRecordError):
            self.accounts.create_account(Account.for_discord_name("acc-1", "alice"))
        with self.assertRaises(DuplicateRecordError):
            self.rooms.create_room(Room(id="room-1"))
        with self.assertRaises(DuplicateRecordError):
            self.participants.add_participant(Participant(user_id="acc-1", room_id="room-1"))

    def test_bootstrap_twice_stores_one_row_each(self):
        for _ in range(2):
            self.assertTrue(ensure_account("acc-1", "alice", self.accounts))
            self.assertTrue(ensure_room("room-1", self.rooms))
            self.assertTrue(ensure_participant("acc-1", "room-1", self.participants))

        with self.accounts._get_connection() as conn:
            counts = [
                conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in ("accounts", "rooms", "participants")
            ]
        self.assertEqual(counts, [1, 1, 1])

    def test_ledger_balances(self):
        self.credits.append(CreditTransfer(sender_id="A", receiver_id="X", amount=10, reason="r1"))
        self.credits.append(CreditTransfer(sender_id="B", receiver_id="X", amount=5, reason="r2"))
        self.credits.append(CreditTransfer(sender_id="A", receiver_id="Y", amount=3, reason="r3"))

        self.assertEqual(get_credit_balance("X", self.credits), 15)
        self.assertEqual(get_credit_balance("Y", self.credits), 3)
        self.assertEqual(get_credit_balance("Z", self.credits), 0)
        self.assertEqual(
            [t.reason for t in self.credits.list_for_receiver("X")],
            ["r1", "r2"],
        )


if __name__ == "__main__":
    unittest.main()
