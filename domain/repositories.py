from __future__ import annotations

from typing import List, Optional, Protocol

from .models import Account, AgentMessage, CreditTransfer, Participant, Room


class AccountRepository(Protocol):
    """
    Persistence abstraction for accounts.

    Implementations must raise `DuplicateRecordError` when `create_account`
    collides with an existing id, and `StoreError` for any other failure.
    """

    def get_by_id(self, account_id: str) -> Optional[Account]:
        ...

    def create_account(self, account: Account) -> None:
        ...


class RoomRepository(Protocol):
    def get_by_id(self, room_id: str) -> Optional[Room]:
        ...

    def create_room(self, room: Room) -> None:
        ...


class ParticipantRepository(Protocol):
    def get(self, user_id: str, room_id: str) -> Optional[Participant]:
        """Return the membership row for the pair, or None if absent."""

        ...

    def add_participant(self, participant: Participant) -> None:
        ...


class CreditRepository(Protocol):
    """
    Append-only credit ledger.

    There is no update or delete operation.
    """

    def append(self, transfer: CreditTransfer) -> None:
        ...

    def list_for_receiver(self, receiver_id: str) -> List[CreditTransfer]:
        """Return every transfer whose receiver is `receiver_id`, oldest first."""

        ...


class IdentityLookup(Protocol):
    """Resolves display names on the identity platform (Discord)."""

    def fetch_bot_name(self, bot_token: str) -> str:
        ...


class AgentRuntime(Protocol):
    """
    The external conversational-agent runtime.

    Returns the answer text, or raises `AgentRuntimeError`.
    """

    def handle_request(self, message: AgentMessage) -> str:
        ...


class FollowUpSender(Protocol):
    def edit_original_response(self, interaction_token: str, content: str) -> None:
        """Replace the deferred placeholder of an interaction with `content`."""

        ...
