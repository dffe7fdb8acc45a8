from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeAlias


@dataclass(frozen=True, slots=True)
class SessionChangedEvent:
    session_id: int


@dataclass(frozen=True, slots=True)
class MessageAddedEvent:
    session_id: int
    message_id: int
    is_user: bool


@dataclass(frozen=True, slots=True)
class MessageTextEvent:
    session_id: int
    message_id: int
    text: str


@dataclass(frozen=True, slots=True)
class AssistantMessageEvent:
    session_id: int
    message_id: int
    content: str


@dataclass(frozen=True, slots=True)
class TitleUpdatedEvent:
    session_id: int
    title: str


@dataclass(frozen=True, slots=True)
class SessionDeletedEvent:
    session_id: int


Event: TypeAlias = (
    SessionChangedEvent
    | MessageAddedEvent
    | MessageTextEvent
    | AssistantMessageEvent
    | TitleUpdatedEvent
    | SessionDeletedEvent
)
EventCallback: TypeAlias = Callable[[Event], None] | None


class EventEmitter:
    def __init__(self, callback: EventCallback = None):
        self._callback = callback

    def emit(self, event: Event) -> None:
        if self._callback is not None:
            self._callback(event)
