from __future__ import annotations

from typing import Optional

import requests

from domain.errors import AgentRuntimeError
from domain.models import AgentMessage
from domain.repositories import AgentRuntime


class HttpAgentRuntime(AgentRuntime):
    """
    Client for an agent runtime reachable over HTTP.

    The runtime receives the message as JSON and answers with
    `{"content": "..."}`; anything else is reported as an
    `AgentRuntimeError`.
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._session = session or requests.Session()
        self._timeout = timeout

    def handle_request(self, message: AgentMessage) -> str:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            response = self._session.post(
                self._url,
                json=message.to_payload(),
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise AgentRuntimeError(f"agent runtime request failed: {exc}") from exc
        except ValueError as exc:
            raise AgentRuntimeError("agent runtime returned invalid JSON") from exc

        content = data.get("content") if isinstance(data, dict) else None
        # Some runtimes nest the text the same way they receive it.
        if isinstance(content, dict):
            content = content.get("content")
        if not isinstance(content, str):
            raise AgentRuntimeError("agent runtime response has no content")
        return content
