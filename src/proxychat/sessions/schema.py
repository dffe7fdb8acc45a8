from typing import Any

from pydantic import BaseModel, Field, field_validator

from proxychat.config import DEFAULT_MODEL, DEFAULT_TITLE, ChatModel, ConfigError, resolve_model
from proxychat.prompts import PLACEHOLDER_PREFIXES


class ChatMessage(BaseModel):
    id: int
    text: str = ""
    is_user: bool

    @property
    def is_transient(self) -> bool:
        """True for blank text or a loading-indicator frame."""
        if not self.text.strip():
            return True
        return self.text.startswith(PLACEHOLDER_PREFIXES)


class ChatSession(BaseModel):
    id: int
    messages: list[ChatMessage] = Field(default_factory=list)
    title: str = DEFAULT_TITLE
    model: ChatModel = DEFAULT_MODEL

    @field_validator("model", mode="before")
    @classmethod
    def _coerce_model(cls, value: Any) -> ChatModel:
        if value is None:
            return DEFAULT_MODEL
        if isinstance(value, ChatModel):
            return value
        try:
            return resolve_model(str(value))
        except ConfigError:
            return DEFAULT_MODEL

    @property
    def is_empty(self) -> bool:
        return not self.messages

