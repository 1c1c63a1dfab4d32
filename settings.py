"""Environment-provided configuration for the interactions service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

from domain.models import discord_uuid


class ConfigError(RuntimeError):
    """A required environment variable is missing or malformed."""


def parse_role_ids(raw: Optional[str]) -> FrozenSet[str]:
    """Parse a comma-separated list of role ids, ignoring blanks."""

    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError(f"The {name} environment variable is required.")
    return value


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    discord_public_key: str
    discord_token: str
    discord_application_id: str
    admin_role_ids: FrozenSet[str] = field(default_factory=frozenset)

    agent_runtime_url: Optional[str] = None
    agent_runtime_api_key: Optional[str] = None

    store_url: Optional[str] = None
    store_service_key: Optional[str] = None
    db_path: str = "credits.db"

    signature_max_age_seconds: int = 300
    followup_max_attempts: int = 3
    followup_backoff_seconds: float = 0.5
    http_timeout_seconds: float = 30.0

    host: str = "0.0.0.0"
    port: int = 8787
    log_level: str = "INFO"

    @property
    def agent_id(self) -> str:
        """Internal account id of the bot itself."""

        return discord_uuid(self.discord_application_id)

    @property
    def store_params(self) -> dict:
        """Keyword arguments for `psycopg2.connect`."""

        params = {"dsn": self.store_url}
        if self.store_service_key:
            params["password"] = self.store_service_key
        return params

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            discord_public_key=_require(env, "DISCORD_PUBLIC_KEY"),
            discord_token=_require(env, "DISCORD_TOKEN"),
            discord_application_id=_require(env, "DISCORD_APPLICATION_ID"),
            admin_role_ids=parse_role_ids(env.get("DISCORD_ADMIN_ROLE_IDS")),
            agent_runtime_url=env.get("AGENT_RUNTIME_URL") or None,
            agent_runtime_api_key=env.get("AGENT_RUNTIME_API_KEY") or None,
            store_url=env.get("STORE_URL") or None,
            store_service_key=env.get("STORE_SERVICE_KEY") or None,
            db_path=env.get("DB_PATH") or "credits.db",
            signature_max_age_seconds=_number(env, "SIGNATURE_MAX_AGE_SECONDS", 300, int),
            followup_max_attempts=_number(env, "FOLLOWUP_MAX_ATTEMPTS", 3, int),
            followup_backoff_seconds=_number(env, "FOLLOWUP_BACKOFF_SECONDS", 0.5, float),
            http_timeout_seconds=_number(env, "HTTP_TIMEOUT_SECONDS", 30.0, float),
            host=env.get("HOST") or "0.0.0.0",
            port=_number(env, "PORT", 8787, int),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
