"""
Slash-command metadata, shared between request handling and command
registration.
"""

from __future__ import annotations

import discord


STRING = discord.AppCommandOptionType.string.value
INTEGER = discord.AppCommandOptionType.integer.value


HELP_COMMAND = {
    "name": "help",
    "description": "Ask a question about the project.",
    "options": [
        {
            "name": "question",
            "description": "The question to ask.",
            "type": STRING,
            "required": False,
        },
    ],
}

SEND_CREDIT_COMMAND = {
    "name": "sendcredit",
    "description": "Send credit to a user",
    "options": [
        {
            "name": "discord_id",
            "description": "The Discord ID of the receiver",
            "type": STRING,
            "required": True,
        },
        {
            "name": "amount",
            "description": "The amount of credit to send",
            "type": INTEGER,
            "required": True,
        },
        {
            "name": "reason",
            "description": "The reason for sending credit",
            "type": STRING,
            "required": True,
        },
    ],
}

GET_CREDIT_COMMAND = {
    "name": "getcredit",
    "description": "Get the total credit for a user",
    "options": [
        {
            "name": "discord_id",
            "description": "The Discord ID of the user",
            "type": STRING,
            "required": True,
        },
    ],
}

ALL_COMMANDS = [HELP_COMMAND, SEND_CREDIT_COMMAND, GET_CREDIT_COMMAND]
