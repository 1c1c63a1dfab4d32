from __future__ import annotations

from typing import Any, Dict, Optional

from domain.models import (
    Command,
    GetCreditCommand,
    HelpCommand,
    Interaction,
    InvalidCommand,
    Invoker,
    SendCreditCommand,
    UnknownCommand,
)

from .commands import GET_CREDIT_COMMAND, HELP_COMMAND, SEND_CREDIT_COMMAND


class PayloadError(ValueError):
    """The interaction payload lacks fields every command interaction carries."""


class _OptionError(ValueError):
    pass


def _options_by_name(data: Dict[str, Any]) -> Dict[str, Any]:
    options = data.get("options")
    if options is None:
        return {}
    if not isinstance(options, list):
        raise _OptionError("options must be a list")
    return {
        opt["name"]: opt.get("value")
        for opt in options
        if isinstance(opt, dict) and isinstance(opt.get("name"), str)
    }


def _string_option(options: Dict[str, Any], name: str, required: bool = True) -> Optional[str]:
    value = options.get(name)
    if value is None:
        if required:
            raise _OptionError(f"missing option '{name}'")
        return None
    if not isinstance(value, str):
        raise _OptionError(f"option '{name}' must be a string")
    return value


def _integer_option(options: Dict[str, Any], name: str) -> int:
    value = options.get(name)
    # bool is an int subclass, but never a valid integer option.
    if isinstance(value, bool) or not isinstance(value, int):
        raise _OptionError(f"option '{name}' must be an integer")
    return value


def parse_command(data: Dict[str, Any]) -> Command:
    """
    Turn the `data` object of an application-command interaction into one
    of the known command shapes.

    Unrecognised names become `UnknownCommand`; recognised names with bad
    options become `InvalidCommand`.
    """

    name = str(data.get("name", ""))

    try:
        if name == HELP_COMMAND["name"]:
            options = _options_by_name(data)
            return HelpCommand(question=_string_option(options, "question", required=False))
        if name == SEND_CREDIT_COMMAND["name"]:
            options = _options_by_name(data)
            return SendCreditCommand(
                receiver_id=_string_option(options, "discord_id"),
                amount=_integer_option(options, "amount"),
                reason=_string_option(options, "reason"),
            )
        if name == GET_CREDIT_COMMAND["name"]:
            options = _options_by_name(data)
            return GetCreditCommand(target_id=_string_option(options, "discord_id"))
    except _OptionError as exc:
        return InvalidCommand(name=name, problem=str(exc))

    return UnknownCommand(name=name)


def _object(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _parse_invoker(payload: Dict[str, Any]) -> Invoker:
    # Guild interactions carry `member`; direct messages only carry `user`.
    member = _object(payload.get("member"))
    user = _object(member.get("user") or payload.get("user"))
    if user.get("id") is None:
        raise PayloadError("interaction has no invoking user")

    roles = member.get("roles") or []
    if not isinstance(roles, list):
        raise PayloadError("member roles must be a list")

    return Invoker(
        discord_id=str(user["id"]),
        username=str(user.get("username") or user["id"]),
        role_ids=[str(role) for role in roles],
    )


def parse_interaction(payload: Dict[str, Any]) -> Interaction:
    """Validate an APPLICATION_COMMAND payload at the dispatch boundary."""

    token = payload.get("token")
    if not token:
        raise PayloadError("interaction has no token")

    channel_id = payload.get("channel_id") or _object(payload.get("channel")).get("id")
    if not channel_id:
        raise PayloadError("interaction has no channel")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise PayloadError("interaction has no command data")

    return Interaction(
        token=str(token),
        channel_id=str(channel_id),
        invoker=_parse_invoker(payload),
        command=parse_command(data),
    )
