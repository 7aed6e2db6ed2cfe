"""
Model/session client used for commit message generation.

Example:
    >>> from opencode_sync.core.client import OpencodeHttpClient, ephemeral_session
    >>> client = OpencodeHttpClient()
    >>> with ephemeral_session(client, "opencode-sync") as session:
    ...     ...
"""

from .backend import ModelClient, ephemeral_session
from .http import OpencodeHttpClient
from .models import ClientResponse, MessagePart, ModelRef, PromptReply, Session

__all__ = [
    "ClientResponse",
    "MessagePart",
    "ModelClient",
    "ModelRef",
    "OpencodeHttpClient",
    "PromptReply",
    "Session",
    "ephemeral_session",
]
