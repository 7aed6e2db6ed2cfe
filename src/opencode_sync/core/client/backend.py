"""
Model client protocol and scoped session helper.

The commit message generator talks to a language model through this port.
OpencodeHttpClient is the real implementation; tests pass fakes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable

from .models import ClientResponse, ModelRef, PromptReply, Session

logger = logging.getLogger(__name__)


@runtime_checkable
class ModelClient(Protocol):
    """
    Protocol for model/session clients.

    Implementations must not raise for transport or API failures; they
    return ClientResponse.failure(...) instead.
    """

    def get_config(self) -> ClientResponse[dict[str, Any]]:
        """Fetch the host configuration (used to find small_model / model)."""
        ...

    def create_session(self, title: str) -> ClientResponse[Session]:
        """Create an ephemeral session."""
        ...

    def prompt(self, session_id: str, model: ModelRef, text: str) -> ClientResponse[PromptReply]:
        """Send a text prompt and wait for the reply."""
        ...

    def delete_session(self, session_id: str) -> ClientResponse[bool]:
        """Delete a session."""
        ...


@contextmanager
def ephemeral_session(client: ModelClient, title: str) -> Iterator[Session | None]:
    """
    Create a session for the duration of a with-block.

    Yields None if the session couldn't be created. The session is always
    deleted afterwards; deletion failures are logged and ignored so they
    never replace the block's own outcome.

    Example:
        >>> with ephemeral_session(client, "opencode-sync") as session:
        ...     if session:
        ...         reply = client.prompt(session.id, model, "hello")
    """
    created = client.create_session(title)
    session = created.data if created.ok else None
    if session is None:
        logger.debug("Could not create session: %s", created.error)
    try:
        yield session
    finally:
        if session is not None:
            try:
                deleted = client.delete_session(session.id)
                if not deleted.ok:
                    logger.debug("Session cleanup failed: %s", deleted.error)
            except Exception as e:  # noqa: BLE001
                logger.debug("Session cleanup raised: %s", e)
