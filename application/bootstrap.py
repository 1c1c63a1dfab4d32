from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from domain.errors import DuplicateRecordError, IdentityLookupError, StoreError
from domain.models import Account, Interaction, Participant, Room
from domain.repositories import (
    AccountRepository,
    IdentityLookup,
    ParticipantRepository,
    RoomRepository,
)


logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    """Which of the records a command may touch are known to exist."""

    agent_account: bool
    invoker_account: bool
    room: bool
    invoker_participant: bool
    agent_participant: bool

    @property
    def complete(self) -> bool:
        return all(
            (
                self.agent_account,
                self.invoker_account,
                self.room,
                self.invoker_participant,
                self.agent_participant,
            )
        )


def ensure_account(
    account_id: str,
    name: Optional[str],
    accounts: AccountRepository,
    identity_lookup: Optional[IdentityLookup] = None,
    credential: Optional[str] = None,
) -> bool:
    """
    Make sure an account row exists for `account_id`.

    When `name` is not known and a bot credential is supplied, the display
    name is looked up on the identity platform before inserting. An
    existing row is never modified.

    Returns True if the account exists afterwards.
    """

    try:
        if accounts.get_by_id(account_id) is not None:
            return True
    except StoreError:
        logger.exception("Error fetching account %s", account_id)

    if name is None and credential and identity_lookup is not None:
        try:
            name = identity_lookup.fetch_bot_name(credential)
        except IdentityLookupError:
            logger.exception("Error resolving name for account %s", account_id)
            return False

    try:
        accounts.create_account(Account.for_discord_name(account_id, name))
    except DuplicateRecordError:
        # Another request inserted it between our read and write.
        return True
    except StoreError:
        logger.exception("Error creating account %s", account_id)
        return False

    logger.info("Account %s (%s) created", account_id, name)
    return True


def ensure_room(room_id: str, rooms: RoomRepository) -> bool:
    try:
        if rooms.get_by_id(room_id) is not None:
            return True
    except StoreError:
        logger.exception("Error fetching room %s", room_id)

    try:
        rooms.create_room(Room(id=room_id))
    except DuplicateRecordError:
        return True
    except StoreError:
        logger.exception("Error creating room %s", room_id)
        return False

    logger.info("Room %s created", room_id)
    return True


def ensure_participant(
    user_id: str,
    room_id: str,
    participants: ParticipantRepository,
) -> bool:
    try:
        if participants.get(user_id, room_id) is not None:
            return True
    except StoreError:
        logger.exception("Error fetching participant %s in room %s", user_id, room_id)

    try:
        participants.add_participant(Participant(user_id=user_id, room_id=room_id))
    except DuplicateRecordError:
        return True
    except StoreError:
        logger.exception("Error linking %s to room %s", user_id, room_id)
        return False

    logger.info("Account %s linked to room %s", user_id, room_id)
    return True


def bootstrap_interaction(
    interaction: Interaction,
    agent_id: str,
    bot_token: Optional[str],
    accounts: AccountRepository,
    rooms: RoomRepository,
    participants: ParticipantRepository,
    identity_lookup: Optional[IdentityLookup] = None,
) -> BootstrapResult:
    """
    Ensure the bot, the invoking user, the channel and both memberships
    exist before a command runs.

    Failures are logged and reported through the result; nothing is raised.
    """

    invoker = interaction.invoker
    room_id = interaction.room_id

    agent_ok = ensure_account(agent_id, None, accounts, identity_lookup, bot_token)
    invoker_ok = ensure_account(invoker.account_id, invoker.username, accounts)
    room_ok = ensure_room(room_id, rooms)

    # A membership cannot be linked to a room or account that is missing.
    invoker_member_ok = (
        invoker_ok
        and room_ok
        and ensure_participant(invoker.account_id, room_id, participants)
    )
    agent_member_ok = (
        agent_ok and room_ok and ensure_participant(agent_id, room_id, participants)
    )

    return BootstrapResult(
        agent_account=agent_ok,
        invoker_account=invoker_ok,
        room=room_ok,
        invoker_participant=invoker_member_ok,
        agent_participant=agent_member_ok,
    )
