from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

import requests

from domain.errors import DiscordApiError, IdentityLookupError
from domain.repositories import FollowUpSender, IdentityLookup


logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"


def _retry_after(response: requests.Response) -> Optional[float]:
    """Seconds Discord asked us to wait, from the header or the JSON body."""

    value = response.headers.get("Retry-After")
    if value is None:
        try:
            body = response.json()
        except ValueError:
            return None
        value = body.get("retry_after") if isinstance(body, dict) else None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if 0 <= seconds < float("inf") else None


class DiscordRestClient(IdentityLookup, FollowUpSender):
    """
    Thin wrapper over the handful of Discord REST endpoints the service uses:

    - `GET /users/@me` to learn the bot's own username;
    - `PUT /applications/{id}/commands` to (re)register slash commands;
    - `PATCH /webhooks/{id}/{token}/messages/@original` to replace a
      deferred interaction response with the final text.
    """

    def __init__(
        self,
        application_id: str,
        bot_token: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        base_url: str = DISCORD_API_BASE,
    ) -> None:
        self._application_id = application_id
        self._bot_token = bot_token
        self._session = session or requests.Session()
        self._timeout = timeout
        self._max_attempts = max(1, max_attempts)
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._base_url = base_url.rstrip("/")

    def _headers(self, bot_token: Optional[str] = None) -> dict:
        return {
            "Authorization": f"Bot {bot_token or self._bot_token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, bot_token: Optional[str] = None, **kwargs) -> requests.Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                headers=self._headers(bot_token),
                timeout=self._timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise DiscordApiError(f"{method} {path} failed: {exc}") from exc

        if not response.ok:
            raise DiscordApiError(
                f"{method} {path}: {response.status_code} {response.reason} {response.text}".rstrip(),
                status=response.status_code,
                retry_after=_retry_after(response) if response.status_code == 429 else None,
            )
        return response

    def fetch_bot_name(self, bot_token: str) -> str:
        try:
            response = self._request("GET", "/users/@me", bot_token=bot_token)
            return response.json()["username"]
        except (DiscordApiError, ValueError, KeyError) as exc:
            raise IdentityLookupError(f"Error fetching bot details: {exc}") from exc

    def register_commands(self, commands: List[dict]) -> List[dict[str, Any]]:
        """
        Overwrite the application's global commands with `commands`.

        Global registration can take minutes to propagate.
        """

        response = self._request(
            "PUT",
            f"/applications/{self._application_id}/commands",
            json=commands,
        )
        return response.json()

    def edit_original_response(self, interaction_token: str, content: str) -> None:
        path = f"/webhooks/{self._application_id}/{interaction_token}/messages/@original"

        for attempt in range(1, self._max_attempts + 1):
            try:
                self._request("PATCH", path, json={"content": content})
                return
            except DiscordApiError as exc:
                if not exc.retryable or attempt == self._max_attempts:
                    raise
                delay = self._backoff_seconds * (2 ** (attempt - 1))
                if exc.retry_after is not None:
                    delay = max(delay, exc.retry_after)
                logger.warning(
                    "Follow-up attempt %d/%d failed (%s); retrying in %.1fs",
                    attempt,
                    self._max_attempts,
                    exc,
                    delay,
                )
                self._sleep(delay)
