from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from domain.errors import AgentRuntimeError, StoreError
from domain.models import (
    AgentMessage,
    CreditTransfer,
    GetCreditCommand,
    HelpCommand,
    Interaction,
    InvalidCommand,
    Invoker,
    SendCreditCommand,
)
from domain.repositories import (
    AccountRepository,
    AgentRuntime,
    CreditRepository,
    IdentityLookup,
    ParticipantRepository,
    RoomRepository,
)

from .bootstrap import BootstrapResult, bootstrap_interaction


logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "How can I assist you?"
NOT_AUTHORIZED = "You are not authorized to send credit."
BOOTSTRAP_FAILED = "Sorry, I couldn't set up your account. Please try again later."


@dataclass(frozen=True)
class CommandContext:
    """
    The slice of configuration command handling depends on.

    Passed explicitly so that several differently configured dispatchers
    can coexist in one process.
    """

    agent_id: str
    bot_token: Optional[str] = None
    admin_role_ids: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class CommandDependencies:
    """Stores and external services used while running a command."""

    accounts: AccountRepository
    rooms: RoomRepository
    participants: ParticipantRepository
    credits: CreditRepository
    agent_runtime: AgentRuntime
    identity_lookup: Optional[IdentityLookup] = None


@dataclass
class CommandResult:
    """Final text shown to the user in place of the deferred placeholder."""

    content: str
    ledger_written: bool = False


def is_admin(invoker: Invoker, admin_role_ids: FrozenSet[str]) -> bool:
    return any(role_id in admin_role_ids for role_id in invoker.role_ids)


def ask_for_help(
    command: HelpCommand,
    interaction: Interaction,
    agent_id: str,
    agent_runtime: AgentRuntime,
) -> CommandResult:
    """Forward the question to the agent runtime and echo it with the answer."""

    question = (command.question or "").strip()
    if not question:
        return CommandResult(content=DEFAULT_PROMPT)

    sender_id = interaction.invoker.account_id
    message = AgentMessage(
        content=question,
        sender_id=sender_id,
        agent_id=agent_id,
        user_ids=[sender_id, agent_id],
        room_id=interaction.room_id,
    )

    try:
        answer = agent_runtime.handle_request(message)
    except AgentRuntimeError as exc:
        logger.error("Agent runtime failed to answer: %s", exc)
        return CommandResult(content=f"Error answering question: {exc}")

    return CommandResult(content=f"You asked: ```{question}```\nAnswer: {answer}")


def send_credit(
    command: SendCreditCommand,
    invoker: Invoker,
    admin_role_ids: FrozenSet[str],
    credits: CreditRepository,
) -> CommandResult:
    """
    Append one transfer to the ledger on behalf of an admin.

    Non-admins get an explicit refusal and nothing is written.
    """

    if not is_admin(invoker, admin_role_ids):
        logger.info("User %s denied /sendcredit", invoker.discord_id)
        return CommandResult(content=NOT_AUTHORIZED)

    transfer = CreditTransfer(
        sender_id=invoker.account_id,
        receiver_id=command.receiver_id,
        amount=command.amount,
        reason=command.reason,
    )
    try:
        credits.append(transfer)
    except StoreError as exc:
        logger.error("Error sending credit: %s", exc)
        return CommandResult(content=f"Error sending credit: {exc}")

    return CommandResult(
        content=(
            f"Credit sent successfully to {command.receiver_id} for "
            f"{command.amount} credits. Reason: {command.reason}"
        ),
        ledger_written=True,
    )


def get_credit_balance(receiver_id: str, credits: CreditRepository) -> int:
    """Sum of all transfer amounts received by `receiver_id` (0 if none)."""

    return sum(t.amount for t in credits.list_for_receiver(receiver_id))


def get_credit(command: GetCreditCommand, credits: CreditRepository) -> CommandResult:
    try:
        total = get_credit_balance(command.target_id, credits)
    except StoreError as exc:
        logger.error("Error fetching credits: %s", exc)
        return CommandResult(content=f"Error fetching credits: {exc}")

    return CommandResult(content=f"Total credits for {command.target_id}: {total}")


def _required_entities_ready(command, bootstrap: BootstrapResult) -> bool:
    if isinstance(command, HelpCommand):
        # The agent runtime reads accounts, the room and memberships.
        return bootstrap.complete
    return bootstrap.invoker_account


def dispatch_command(
    interaction: Interaction,
    context: CommandContext,
    deps: CommandDependencies,
) -> CommandResult:
    """
    Run the command carried by a verified interaction.

    Unknown commands answer with the default prompt without touching the
    store. Known commands first bootstrap the records they reference and
    abort visibly if a required record could not be ensured.
    """

    command = interaction.command

    if isinstance(command, InvalidCommand):
        logger.warning("Rejected /%s: %s", command.name, command.problem)
        return CommandResult(content=f"Invalid options for /{command.name}.")

    if not isinstance(command, (HelpCommand, SendCreditCommand, GetCreditCommand)):
        return CommandResult(content=DEFAULT_PROMPT)

    bootstrap = bootstrap_interaction(
        interaction,
        context.agent_id,
        context.bot_token,
        deps.accounts,
        deps.rooms,
        deps.participants,
        deps.identity_lookup,
    )
    if not _required_entities_ready(command, bootstrap):
        logger.error("Bootstrap incomplete for interaction in %s: %s", interaction.channel_id, bootstrap)
        return CommandResult(content=BOOTSTRAP_FAILED)

    if isinstance(command, HelpCommand):
        return ask_for_help(command, interaction, context.agent_id, deps.agent_runtime)
    if isinstance(command, SendCreditCommand):
        return send_credit(command, interaction.invoker, context.admin_role_ids, deps.credits)
    return get_credit(command, deps.credits)
