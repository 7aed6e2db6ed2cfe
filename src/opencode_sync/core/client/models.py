"""
Data models for the model/session client.

Every client call returns a ClientResponse holding either a payload or an
error string, so callers never have to guess the response shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


@dataclass(frozen=True)
class ClientResponse(Generic[T]):
    """Either a successful payload or an error."""

    data: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None

    @classmethod
    def success(cls, data: T) -> ClientResponse[T]:
        return cls(data=data)

    @classmethod
    def failure(cls, error: str) -> ClientResponse[T]:
        return cls(error=error)


class ModelRef(BaseModel):
    """Provider + model pair, written as "provider/model" in OpenCode config."""

    provider_id: str = Field(serialization_alias="providerID")
    model_id: str = Field(serialization_alias="modelID")

    @classmethod
    def parse(cls, value: str | None) -> ModelRef | None:
        """
        Parse "provider/model".

        Example:
            >>> ModelRef.parse("anthropic/claude-haiku-4-5")
            ModelRef(provider_id='anthropic', model_id='claude-haiku-4-5')
        """
        if not value:
            return None
        provider_id, _, model_id = value.partition("/")
        if not provider_id or not model_id:
            return None
        return cls(provider_id=provider_id, model_id=model_id)


class Session(BaseModel):
    id: str
    title: str | None = None


class MessagePart(BaseModel):
    type: str
    text: str | None = None


@dataclass(frozen=True)
class PromptReply:
    """Assistant reply to a prompt."""

    parts: list[MessagePart] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> PromptReply:
        """Build from a message payload ({parts} or {info: {parts}})."""
        if not isinstance(payload, dict):
            return cls()
        raw_parts = payload.get("parts")
        if raw_parts is None and isinstance(payload.get("info"), dict):
            raw_parts = payload["info"].get("parts")
        parts = [
            MessagePart.model_validate(part)
            for part in raw_parts or []
            if isinstance(part, dict) and isinstance(part.get("type"), str)
        ]
        return cls(parts=parts)

    def first_text(self) -> str | None:
        """Text of the first non-empty text part, stripped."""
        for part in self.parts:
            if part.type == "text" and part.text and part.text.strip():
                return part.text.strip()
        return None
