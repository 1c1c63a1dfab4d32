"""FastAPI application exposing the Discord interactions endpoint."""

from __future__ import annotations

import json
import logging

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from domain.errors import DiscordApiError
from infrastructure.discord_api import DiscordRestClient
from interfaces.discord.commands import ALL_COMMANDS
from interfaces.discord.handlers import DeferredResponseCoordinator, handle_interaction
from settings import Settings


logger = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    coordinator: DeferredResponseCoordinator,
    discord_client: DiscordRestClient,
) -> FastAPI:
    """Build the web app; every dependency is injected so tests can run several side by side."""

    app = FastAPI(title="Discord credit interactions", version="1.0.0")

    @app.get("/", response_class=PlainTextResponse)
    def hello() -> str:
        return f"👋 {settings.discord_application_id}"

    @app.get("/commands", response_class=PlainTextResponse)
    def refresh_commands() -> str:
        try:
            registered = discord_client.register_commands(ALL_COMMANDS)
        except DiscordApiError as exc:
            logger.error("Error registering commands: %s", exc)
        else:
            logger.info("Registered all commands")
            logger.info(json.dumps(registered, indent=2))
        return "Commands refreshed"

    @app.post("/")
    async def interactions(request: Request, background_tasks: BackgroundTasks) -> Response:
        raw_body = await request.body()
        reply = handle_interaction(
            raw_body,
            request.headers,
            settings.discord_public_key,
            max_age_seconds=settings.signature_max_age_seconds,
        )

        if reply.deferred is not None:
            # Starlette runs background tasks only after the response is sent.
            background_tasks.add_task(coordinator.complete, reply.deferred)

        if isinstance(reply.body, str):
            return PlainTextResponse(reply.body, status_code=reply.status_code)
        return JSONResponse(reply.body, status_code=reply.status_code)

    return app
