from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import discord

from application.services import (
    CommandContext,
    CommandDependencies,
    CommandResult,
    dispatch_command,
)
from domain.errors import DiscordApiError
from domain.models import Interaction
from domain.repositories import FollowUpSender

from .payloads import PayloadError, parse_interaction
from .verification import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify_discord_request


logger = logging.getLogger(__name__)

UNEXPECTED_FAILURE = "Something went wrong while handling your command."


@dataclass
class InteractionReply:
    """
    What to send back on the interactions endpoint.

    `deferred` is set when the reply is only an acknowledgement and the
    command still has to be completed in the background.
    """

    status_code: int
    body: Any
    deferred: Optional[Interaction] = None


def handle_interaction(
    raw_body: bytes,
    headers: Mapping[str, str],
    public_key: str,
    max_age_seconds: Optional[int] = 300,
    now: Optional[float] = None,
) -> InteractionReply:
    """
    Verify an inbound interaction and produce the immediate reply.

    No store or network calls happen here: application commands are only
    acknowledged with a deferred response and handed back for background
    completion.
    """

    lowered = {k.lower(): v for k, v in headers.items()}
    verification = verify_discord_request(
        raw_body,
        lowered.get(SIGNATURE_HEADER),
        lowered.get(TIMESTAMP_HEADER),
        public_key,
        max_age_seconds=max_age_seconds,
        now=now,
    )
    if not verification.is_valid or verification.interaction is None:
        return InteractionReply(status_code=401, body="Bad request signature.")

    payload = verification.interaction
    interaction_type = payload.get("type")

    if interaction_type == discord.InteractionType.ping.value:
        return InteractionReply(
            status_code=200,
            body={"type": discord.InteractionResponseType.pong.value},
        )

    if interaction_type == discord.InteractionType.application_command.value:
        try:
            interaction = parse_interaction(payload)
        except PayloadError as exc:
            logger.warning("Malformed application command: %s", exc)
            return InteractionReply(status_code=400, body={"error": str(exc)})

        logger.info(
            "Deferring /%s from %s",
            (payload.get("data") or {}).get("name"),
            interaction.invoker.discord_id,
        )
        return InteractionReply(
            status_code=200,
            body={"type": discord.InteractionResponseType.deferred_channel_message.value},
            deferred=interaction,
        )

    logger.warning("Unknown interaction type: %s", interaction_type)
    return InteractionReply(status_code=400, body={"error": "Unknown Type"})


class DeferredResponseCoordinator:
    """
    Completes acknowledged interactions: runs the command, then replaces
    the deferred placeholder with the result through exactly one follow-up
    edit.

    `on_complete` is invoked with the interaction and the final text once
    the follow-up has been attempted, whatever its outcome.
    """

    def __init__(
        self,
        context: CommandContext,
        deps: CommandDependencies,
        follow_up: FollowUpSender,
        on_complete: Optional[Callable[[Interaction, str], None]] = None,
    ) -> None:
        self._context = context
        self._deps = deps
        self._follow_up = follow_up
        self._on_complete = on_complete

    def _run_command(self, interaction: Interaction) -> CommandResult:
        try:
            return dispatch_command(interaction, self._context, self._deps)
        except Exception:
            logger.exception("Unhandled error while running command")
            return CommandResult(content=UNEXPECTED_FAILURE)

    def complete(self, interaction: Interaction) -> str:
        result = self._run_command(interaction)

        try:
            self._follow_up.edit_original_response(interaction.token, result.content)
        except DiscordApiError as exc:
            # The user never sees an answer for this interaction.
            logger.error("Error sending follow-up message: %s", exc)
        else:
            logger.info("Follow-up delivered for channel %s", interaction.channel_id)

        if self._on_complete is not None:
            self._on_complete(interaction, result.content)
        return result.content
