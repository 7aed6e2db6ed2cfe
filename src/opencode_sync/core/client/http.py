"""
OpenCode server client over HTTP.

Talks to a running `opencode serve` instance. Every method returns a
ClientResponse; httpx errors and malformed payloads become failures.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from .models import ClientResponse, ModelRef, PromptReply, Session

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://127.0.0.1:4096"
DEFAULT_TIMEOUT = 60.0


def resolve_server_url() -> str:
    return os.environ.get("OPENCODE_SERVER_URL") or DEFAULT_SERVER_URL


class OpencodeHttpClient:
    """
    ModelClient backed by the OpenCode server HTTP API.

    Example:
        >>> with OpencodeHttpClient() as client:
        ...     config = client.get_config()
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or resolve_server_url()).rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> OpencodeHttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> ClientResponse[Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            if not response.content:
                return ClientResponse()
            return ClientResponse.success(response.json())
        except httpx.HTTPStatusError as e:
            return ClientResponse.failure(
                f"{method} {path} returned {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            return ClientResponse.failure(f"{method} {path} failed: {e}")
        except ValueError as e:
            return ClientResponse.failure(f"{method} {path} returned invalid JSON: {e}")

    def get_config(self) -> ClientResponse[dict[str, Any]]:
        result = self._request("GET", "/config")
        if not result.ok:
            return ClientResponse.failure(result.error or "empty config response")
        if not isinstance(result.data, dict):
            return ClientResponse.failure("config response is not an object")
        return ClientResponse.success(result.data)

    def create_session(self, title: str) -> ClientResponse[Session]:
        result = self._request("POST", "/session", json={"title": title})
        if not result.ok:
            return ClientResponse.failure(result.error or "empty session response")
        if not isinstance(result.data, dict) or not result.data.get("id"):
            return ClientResponse.failure("session response has no id")
        return ClientResponse.success(Session.model_validate(result.data))

    def prompt(self, session_id: str, model: ModelRef, text: str) -> ClientResponse[PromptReply]:
        body = {
            "model": model.model_dump(by_alias=True),
            "parts": [{"type": "text", "text": text}],
        }
        result = self._request("POST", f"/session/{session_id}/message", json=body)
        if not result.ok:
            return ClientResponse.failure(result.error or "empty prompt response")
        return ClientResponse.success(PromptReply.from_payload(result.data))

    def delete_session(self, session_id: str) -> ClientResponse[bool]:
        result = self._request("DELETE", f"/session/{session_id}")
        if result.error:
            return ClientResponse.failure(result.error)
        return ClientResponse.success(True)
