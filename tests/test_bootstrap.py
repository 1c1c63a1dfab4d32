import unittest

from application.bootstrap import (
    bootstrap_interaction,
    ensure_account,
    ensure_participant,
    ensure_room,
)
from domain.errors import DuplicateRecordError
from domain.models import Account, HelpCommand, Interaction, Invoker, discord_uuid

from doubles import (
    FakeIdentityLookup,
    InMemoryAccountRepository,
    InMemoryParticipantRepository,
    InMemoryRoomRepository,
)


class RacingAccountRepository(InMemoryAccountRepository):
    """Simulates another request inserting the row between read and write."""

    def create_account(self, account: Account) -> None:
        self.accounts[account.id] = account
        raise DuplicateRecordError(account.id)


class EnsureAccountTests(unittest.TestCase):
    def setUp(self) -> None:
        self.accounts = InMemoryAccountRepository()

    def test_is_idempotent(self):
        self.assertTrue(ensure_account("acc-1", "alice", self.accounts))
        self.assertTrue(ensure_account("acc-1", "alice", self.accounts))

        self.assertEqual(len(self.accounts.accounts), 1)
        self.assertEqual(self.accounts.inserts, 1)

    def test_never_updates_existing_account(self):
        ensure_account("acc-1", "alice", self.accounts)
        ensure_account("acc-1", "renamed", self.accounts)

        self.assertEqual(self.accounts.accounts["acc-1"].name, "alice")

    def test_new_account_fields(self):
        ensure_account("acc-1", "alice", self.accounts)

        account = self.accounts.accounts["acc-1"]
        self.assertEqual(account.email, "alice@discord")
        self.assertTrue(account.register_complete)

    def test_looks_up_name_only_when_creating(self):
        identity = FakeIdentityLookup(name="helperbot")

        ensure_account("bot", None, self.accounts, identity, "bot-token")
        ensure_account("bot", None, self.accounts, identity, "bot-token")

        self.assertEqual(self.accounts.accounts["bot"].name, "helperbot")
        self.assertEqual(identity.tokens, ["bot-token"])

    def test_lookup_failure_leaves_account_absent(self):
        identity = FakeIdentityLookup()
        identity.fail = True

        self.assertFalse(ensure_account("bot", None, self.accounts, identity, "bot-token"))
        self.assertEqual(self.accounts.accounts, {})

    def test_lost_insert_race_counts_as_success(self):
        accounts = RacingAccountRepository()

        self.assertTrue(ensure_account("acc-1", "alice", accounts))
        self.assertEqual(len(accounts.accounts), 1)

    def test_failed_read_still_attempts_insert(self):
        self.accounts.fail_reads = True

        self.assertTrue(ensure_account("acc-1", "alice", self.accounts))
        self.assertIn("acc-1", self.accounts.accounts)

    def test_failed_insert_is_reported(self):
        self.accounts.fail_writes = True

        self.assertFalse(ensure_account("acc-1", "alice", self.accounts))


class EnsureRoomAndParticipantTests(unittest.TestCase):
    def test_room_is_idempotent(self):
        rooms = InMemoryRoomRepository()

        self.assertTrue(ensure_room("room-1", rooms))
        self.assertTrue(ensure_room("room-1", rooms))

        self.assertEqual(list(rooms.rooms), ["room-1"])

    def test_room_insert_failure(self):
        rooms = InMemoryRoomRepository()
        rooms.fail_writes = True

        self.assertFalse(ensure_room("room-1", rooms))

    def test_participant_pair_is_never_duplicated(self):
        participants = InMemoryParticipantRepository()

        self.assertTrue(ensure_participant("acc-1", "room-1", participants))
        self.assertTrue(ensure_participant("acc-1", "room-1", participants))
        self.assertTrue(ensure_participant("acc-2", "room-1", participants))

        self.assertEqual(len(participants.rows), 2)


class BootstrapInteractionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.accounts = InMemoryAccountRepository()
        self.rooms = InMemoryRoomRepository()
        self.participants = InMemoryParticipantRepository()
        self.identity = FakeIdentityLookup()
        self.interaction = Interaction(
            token="tok",
            channel_id="777",
            invoker=Invoker(discord_id="42", username="alice"),
            command=HelpCommand(question="hi"),
        )
        self.agent_id = discord_uuid("1100")

    def run_bootstrap(self):
        return bootstrap_interaction(
            self.interaction,
            self.agent_id,
            "bot-token",
            self.accounts,
            self.rooms,
            self.participants,
            self.identity,
        )

    def test_creates_every_record_once(self):
        first = self.run_bootstrap()
        second = self.run_bootstrap()

        self.assertTrue(first.complete)
        self.assertTrue(second.complete)
        self.assertEqual(set(self.accounts.accounts), {self.agent_id, discord_uuid("42")})
        self.assertEqual(list(self.rooms.rooms), [discord_uuid("777")])
        self.assertEqual(len(self.participants.rows), 2)

    def test_no_membership_without_room(self):
        self.rooms.fail_writes = True

        result = self.run_bootstrap()

        self.assertFalse(result.complete)
        self.assertTrue(result.invoker_account)
        self.assertFalse(result.invoker_participant)
        self.assertEqual(self.participants.rows, [])


if __name__ == "__main__":
    unittest.main()
