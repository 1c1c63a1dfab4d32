from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Union


# Fixed namespace so that a Discord snowflake always maps to the same UUID.
DISCORD_ID_NAMESPACE = uuid.UUID("6f2d3c1e-9b1a-5c47-8e0f-2a4d5b6c7e81")


def discord_uuid(discord_id: str) -> str:
    """Derive the stable internal UUID for a Discord user/channel/application id."""

    return str(uuid.uuid5(DISCORD_ID_NAMESPACE, str(discord_id)))


@dataclass
class Account:
    """
    A participant known to the agent runtime: either a Discord user or the
    bot itself.

    Accounts are created the first time an id is seen and are never
    updated or deleted by this service.
    """

    id: str
    name: Optional[str]
    email: str
    register_complete: bool = True

    @classmethod
    def for_discord_name(cls, account_id: str, name: Optional[str]) -> "Account":
        return cls(
            id=account_id,
            name=name,
            email=f"{name}@discord",
            register_complete=True,
        )


@dataclass
class Room:
    """A conversation channel."""

    id: str


@dataclass
class Participant:
    """Membership of an account in a room."""

    user_id: str
    room_id: str


@dataclass
class CreditTransfer:
    """
    One row of the append-only credit ledger.

    `sender_id` is the internal account id of whoever issued the transfer,
    while `receiver_id` is the raw Discord id typed into the command.
    """

    sender_id: str
    receiver_id: str
    amount: int
    reason: str


@dataclass
class HelpCommand:
    question: Optional[str]


@dataclass
class SendCreditCommand:
    receiver_id: str
    amount: int
    reason: str


@dataclass
class GetCreditCommand:
    target_id: str


@dataclass
class InvalidCommand:
    """A known command whose options did not match its definition."""

    name: str
    problem: str


@dataclass
class UnknownCommand:
    name: str


Command = Union[
    HelpCommand,
    SendCreditCommand,
    GetCreditCommand,
    InvalidCommand,
    UnknownCommand,
]


@dataclass
class Invoker:
    """The Discord user who ran a slash command."""

    discord_id: str
    username: str
    role_ids: List[str] = field(default_factory=list)

    @property
    def account_id(self) -> str:
        return discord_uuid(self.discord_id)


@dataclass(frozen=True)
class Interaction:
    """
    A verified application-command interaction.

    Instances are shared read-only between the acknowledgement and the
    background completion of a command.
    """

    token: str
    channel_id: str
    invoker: Invoker
    command: Command

    @property
    def room_id(self) -> str:
        return discord_uuid(self.channel_id)


@dataclass
class AgentMessage:
    """Message handed to the external agent runtime."""

    content: str
    sender_id: str
    agent_id: str
    user_ids: List[str]
    room_id: str

    def to_payload(self) -> dict:
        return {
            "content": {"content": self.content},
            "senderId": self.sender_id,
            "agentId": self.agent_id,
            "userIds": list(self.user_ids),
            "room_id": self.room_id,
        }
