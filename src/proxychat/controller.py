from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Callable, Sequence

from proxychat.client import CompletionClient
from proxychat.config import ChatConfig, ChatModel
from proxychat.events import (
    AssistantMessageEvent,
    EventEmitter,
    MessageAddedEvent,
    MessageTextEvent,
    SessionChangedEvent,
    SessionDeletedEvent,
    TitleUpdatedEvent,
)
from proxychat.prompts import GENERATING_FRAMES
from proxychat.sessions.schema import ChatMessage, ChatSession
from proxychat.sessions.store import SessionStore
from proxychat.titles import TitleSummarizer

logger = logging.getLogger(__name__)


class LoadingIndicator:
    """Cycles placeholder frames into a pending reply until stopped.

    ``stop`` revokes the write token and waits for the task to finish, so no
    frame can be written once it returns.
    """

    def __init__(
        self,
        on_frame: Callable[[str], None],
        interval: float,
        frames: Sequence[str] = GENERATING_FRAMES,
    ):
        self._on_frame = on_frame
        self.interval = interval
        self.frames = tuple(frames)
        self._active = False
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._task is not None:
            return
        self._active = True
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        for frame in itertools.cycle(self.frames):
            if not self._active:
                return
            self._on_frame(frame)
            await asyncio.sleep(self.interval)

    async def stop(self) -> None:
        self._active = False
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait({task})


class SessionController:
    def __init__(
        self,
        store: SessionStore,
        config: ChatConfig | None = None,
        client: CompletionClient | None = None,
        summarizer: TitleSummarizer | None = None,
        emitter: EventEmitter | None = None,
    ):
        self.config = config or ChatConfig()
        self.store = store
        self.client = client or CompletionClient(self.config)
        self.summarizer = summarizer or TitleSummarizer(self.client)
        self.emitter = emitter or EventEmitter()
        self.selected_model: ChatModel = self.config.model
        self.is_generating = False
        self._background: set[asyncio.Task] = set()

        self.sessions: list[ChatSession] = store.load()
        if self.sessions:
            self.current = self.sessions[0]
            self.next_session_id = max(session.id for session in self.sessions) + 1
        else:
            self.current = ChatSession(id=1, model=self.selected_model)
            self.next_session_id = 2

        self._last_message_id = max(
            (m.id for session in self.sessions for m in session.messages),
            default=0,
        )

    # -- lookup -------------------------------------------------------------

    def get_session(self, session_id: int) -> ChatSession | None:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def is_stored(self, session: ChatSession) -> bool:
        return self.get_session(session.id) is session

    # -- persistence --------------------------------------------------------

    def _save_chat(self, session: ChatSession) -> None:
        for index, existing in enumerate(self.sessions):
            if existing.id == session.id:
                self.sessions[index] = session
                break
        else:
            self.sessions.append(session)
        self.store.save(self.sessions)

    def _persist_if_stored(self, session: ChatSession) -> bool:
        if not self.is_stored(session):
            logger.debug(f"Session {session.id} was removed; skipping save")
            return False
        self.store.save(self.sessions)
        return True

    # -- session management -------------------------------------------------

    def _create_session(self, model: ChatModel | None = None) -> ChatSession:
        session = ChatSession(id=self.next_session_id, model=model or self.selected_model)
        self.next_session_id += 1
        return session

    def start_new_chat(self, model: ChatModel | None = None) -> ChatSession:
        self.current = self._create_session(model)
        logger.info(f"Started new chat {self.current.id}")
        self.emitter.emit(SessionChangedEvent(session_id=self.current.id))
        return self.current

    def select_session(self, session_id: int) -> ChatSession | None:
        session = self.get_session(session_id)
        if session is None:
            return None
        self.current = session
        self.selected_model = session.model
        self.emitter.emit(SessionChangedEvent(session_id=session.id))
        return session

    def delete_session(self, session_id: int) -> bool:
        session = self.get_session(session_id)
        if session is None and self.current.id != session_id:
            return False

        if session is not None:
            self.sessions.remove(session)
            self.store.save(self.sessions)
        logger.info(f"Deleted session {session_id}")
        self.emitter.emit(SessionDeletedEvent(session_id=session_id))

        if self.current.id == session_id:
            self.current = self.sessions[0] if self.sessions else self._create_session()
            self.emitter.emit(SessionChangedEvent(session_id=self.current.id))
        return True

    def set_model(self, model: ChatModel) -> None:
        self.selected_model = model
        self.current.model = model
        if self.is_stored(self.current):
            self.store.save(self.sessions)

    # -- messaging ----------------------------------------------------------

    def _next_message_id(self) -> int:
        now_ms = time.time_ns() // 1_000_000
        self._last_message_id = max(now_ms, self._last_message_id + 1)
        return self._last_message_id

    def _write_text(self, session: ChatSession, message: ChatMessage, text: str) -> None:
        message.text = text
        self.emitter.emit(
            MessageTextEvent(session_id=session.id, message_id=message.id, text=text)
        )

    async def handle_send_message(self, text: str) -> bool:
        """Send ``text`` in the active session; False when the input is ignored."""
        if not text or not text.strip():
            return False
        if self.is_generating:
            logger.debug("Send ignored: a reply is still being generated")
            return False

        cleaned = text.strip()
        session = self.current
        user_message = ChatMessage(id=self._next_message_id(), text=cleaned, is_user=True)
        reply = ChatMessage(id=self._next_message_id(), text="", is_user=False)
        session.messages.extend([user_message, reply])
        self.is_generating = True
        try:
            self._save_chat(session)
            for message in (user_message, reply):
                self.emitter.emit(
                    MessageAddedEvent(
                        session_id=session.id,
                        message_id=message.id,
                        is_user=message.is_user,
                    )
                )

            content = await self._obtain_reply(session, reply, cleaned)
            reply.text = content
            self._persist_if_stored(session)
            self.emitter.emit(
                AssistantMessageEvent(session_id=session.id, message_id=reply.id, content=content)
            )
        except asyncio.CancelledError:
            if reply.is_transient:
                reply.text = ""
            logger.info(f"Send in session {session.id} cancelled")
            raise
        finally:
            self.is_generating = False

        if len(session.messages) == 2:
            self._schedule_title(session.id, cleaned)
        return True

    async def _obtain_reply(self, session: ChatSession, reply: ChatMessage, prompt: str) -> str:
        indicator = LoadingIndicator(
            lambda frame: self._write_text(session, reply, frame),
            interval=self.config.indicator_interval_s,
        )
        indicator.start()
        try:
            if self.config.stream:
                return await self._stream_reply(session, reply, prompt, indicator)
            return await self._complete_reply(session, reply, indicator)
        finally:
            await indicator.stop()

    async def _stream_reply(
        self,
        session: ChatSession,
        reply: ChatMessage,
        prompt: str,
        indicator: LoadingIndicator,
    ) -> str:
        accumulated: list[str] = []

        async def on_chunk(fragment: str) -> None:
            if indicator.active:
                await indicator.stop()
            accumulated.append(fragment)
            self._write_text(session, reply, "".join(accumulated))

        history = list(session.messages) if self.config.stream_with_history else None
        await self.client.stream(
            prompt,
            self.config.api_key,
            on_chunk,
            model_id=session.model.model_id,
            endpoint=session.model.endpoint,
            history=history,
        )
        return "".join(accumulated)

    async def _complete_reply(
        self,
        session: ChatSession,
        reply: ChatMessage,
        indicator: LoadingIndicator,
    ) -> str:
        content = await self.client.complete(
            list(session.messages),
            self.config.api_key,
            model_id=session.model.model_id,
            endpoint=session.model.endpoint,
        )
        await indicator.stop()

        delay = self.config.reveal_delay_s
        if delay > 0:
            for end in range(1, len(content) + 1):
                self._write_text(session, reply, content[:end])
                await asyncio.sleep(delay)
        return content

    # -- titling ------------------------------------------------------------

    def _schedule_title(self, session_id: int, first_message: str) -> None:
        task = asyncio.create_task(self._apply_generated_title(session_id, first_message))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _apply_generated_title(self, session_id: int, first_message: str) -> None:
        title = await self.summarizer.generate(first_message, self.config.api_key)
        session = self.get_session(session_id)
        if session is None:
            logger.debug(f"Session {session_id} gone before its title arrived")
            return
        session.title = title
        self.store.save(self.sessions)
        self.emitter.emit(TitleUpdatedEvent(session_id=session_id, title=title))

    async def wait_for_background(self) -> None:
        if self._background:
            await asyncio.gather(*list(self._background))

    async def aclose(self) -> None:
        pending = list(self._background)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)
