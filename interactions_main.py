import logging

import uvicorn
from dotenv import load_dotenv

from application.services import CommandContext, CommandDependencies
from infrastructure.agent_runtime_http import HttpAgentRuntime
from infrastructure.db.account_repository_postgres import PostgresAccountRepository
from infrastructure.db.account_repository_sqlite import SqliteAccountRepository
from infrastructure.db.credit_repository_postgres import PostgresCreditRepository
from infrastructure.db.credit_repository_sqlite import SqliteCreditRepository
from infrastructure.db.participant_repository_postgres import PostgresParticipantRepository
from infrastructure.db.participant_repository_sqlite import SqliteParticipantRepository
from infrastructure.db.room_repository_postgres import PostgresRoomRepository
from infrastructure.db.room_repository_sqlite import SqliteRoomRepository
from infrastructure.discord_api import DiscordRestClient
from interfaces.discord.handlers import DeferredResponseCoordinator
from interfaces.http.app import create_app
from settings import ConfigError, Settings


logger = logging.getLogger(__name__)


def build_dependencies(settings: Settings, discord_client: DiscordRestClient) -> CommandDependencies:
    if not settings.agent_runtime_url:
        raise ConfigError("The AGENT_RUNTIME_URL environment variable is required.")

    agent_runtime = HttpAgentRuntime(
        settings.agent_runtime_url,
        api_key=settings.agent_runtime_api_key,
        timeout=settings.http_timeout_seconds,
    )

    if settings.store_url:
        params = settings.store_params
        # Accounts and rooms first: participants reference them.
        accounts = PostgresAccountRepository(params)
        rooms = PostgresRoomRepository(params)
        participants = PostgresParticipantRepository(params)
        credits = PostgresCreditRepository(params)
    else:
        logger.info("STORE_URL not set, using SQLite database %s", settings.db_path)
        accounts = SqliteAccountRepository(settings.db_path)
        rooms = SqliteRoomRepository(settings.db_path)
        participants = SqliteParticipantRepository(settings.db_path)
        credits = SqliteCreditRepository(settings.db_path)

    return CommandDependencies(
        accounts=accounts,
        rooms=rooms,
        participants=participants,
        credits=credits,
        agent_runtime=agent_runtime,
        identity_lookup=discord_client,
    )


def build_app(settings: Settings):
    discord_client = DiscordRestClient(
        settings.discord_application_id,
        settings.discord_token,
        timeout=settings.http_timeout_seconds,
        max_attempts=settings.followup_max_attempts,
        backoff_seconds=settings.followup_backoff_seconds,
    )
    context = CommandContext(
        agent_id=settings.agent_id,
        bot_token=settings.discord_token,
        admin_role_ids=settings.admin_role_ids,
    )
    coordinator = DeferredResponseCoordinator(
        context,
        build_dependencies(settings, discord_client),
        discord_client,
    )
    return create_app(settings, coordinator, discord_client)


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = build_app(settings)
    logger.info("Serving Discord interactions on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
