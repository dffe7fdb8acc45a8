"""HTTP glue for the proxy chat-completions endpoint.

Two modes share the same request shaping: ``complete`` returns the whole
reply, ``stream`` feeds server-sent-event fragments to a callback. Neither
raises on HTTP or transport failures; failures degrade to displayable text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeAlias

import httpx

from proxychat.config import DEFAULT_MODEL, ChatConfig
from proxychat.prompts import PLAIN_TEXT_INSTRUCTION
from proxychat.sessions.schema import ChatMessage

logger = logging.getLogger(__name__)

EVENT_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

ChunkCallback: TypeAlias = Callable[[str], Awaitable[None]]


def select_history(messages: Sequence[ChatMessage], limit: int = 20) -> list[ChatMessage]:
    relevant = [message for message in messages if not message.is_transient]
    return relevant[-limit:]


def build_chat_messages(
    history: Sequence[ChatMessage],
    system_prompt: str | None = PLAIN_TEXT_INSTRUCTION,
) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    for message in history:
        role = "user" if message.is_user else "assistant"
        messages.append({"role": role, "content": message.text})
    return messages


def build_request_body(
    model_id: str,
    messages: list[dict[str, str]],
    stream: bool | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"model": model_id, "messages": messages}
    if stream is not None:
        body["stream"] = stream
    return body


def _first_choice(payload: Any) -> dict | None:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    return choice if isinstance(choice, dict) else None


def extract_message_content(payload: Any) -> str:
    choice = _first_choice(payload)
    if choice is None:
        return ""
    message = choice.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


def extract_delta_content(payload: Any) -> str:
    choice = _first_choice(payload)
    if choice is None:
        return ""
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


def parse_event_line(line: str) -> str | None:
    """Return the trimmed payload of an SSE ``data:`` line, else None."""
    if not line.startswith(EVENT_PREFIX):
        return None
    return line[len(EVENT_PREFIX):].strip()


class CompletionClient:
    def __init__(
        self,
        config: ChatConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ChatConfig()
        self._transport = transport

    def _http_client(self, timeout: httpx.Timeout) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    @property
    def request_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.config.request_timeout_s)

    @property
    def stream_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.config.stream_connect_timeout_s,
            write=self.config.stream_connect_timeout_s,
            read=self.config.stream_read_timeout_s,
            pool=self.config.stream_connect_timeout_s,
        )

    @staticmethod
    def headers(api_key: str, streaming: bool = False) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        if streaming:
            headers["Accept"] = "text/event-stream"
            headers["Cache-Control"] = "no-cache"
        return headers

    async def post_json(
        self,
        endpoint: str,
        api_key: str,
        body: dict[str, Any],
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Response:
        async with self._http_client(timeout or self.request_timeout) as client:
            return await client.post(endpoint, json=body, headers=self.headers(api_key))

    async def complete(
        self,
        history: Sequence[ChatMessage],
        api_key: str,
        model_id: str = DEFAULT_MODEL.model_id,
        endpoint: str = DEFAULT_MODEL.endpoint,
    ) -> str:
        relevant = select_history(history, self.config.history_limit)
        body = build_request_body(model_id, build_chat_messages(relevant), stream=False)

        try:
            response = await self.post_json(endpoint, api_key, body)
            if not response.is_success:
                logger.warning(
                    f"Completion request to {endpoint} failed: {response.status_code}"
                )
                return f"Error: {response.status_code} {response.reason_phrase}"
            if not response.content:
                return ""
            return extract_message_content(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Completion request to {endpoint} failed: {e!r}")
            return f"[Connection Error: {e}]"

    async def stream(
        self,
        prompt: str,
        api_key: str,
        on_chunk: ChunkCallback,
        *,
        model_id: str = DEFAULT_MODEL.model_id,
        endpoint: str = DEFAULT_MODEL.endpoint,
        history: Sequence[ChatMessage] | None = None,
    ) -> None:
        if history is None:
            messages = [{"role": "user", "content": prompt}]
        else:
            messages = build_chat_messages(
                select_history(history, self.config.history_limit)
            )
        body = build_request_body(model_id, messages, stream=True)

        try:
            async with self._http_client(self.stream_timeout) as client:
                async with client.stream(
                    "POST",
                    endpoint,
                    json=body,
                    headers=self.headers(api_key, streaming=True),
                ) as response:
                    if not response.is_success:
                        logger.error(
                            f"Stream request to {endpoint} failed: {response.status_code}"
                        )
                        return
                    async for line in response.aiter_lines():
                        data = parse_event_line(line)
                        if data is None:
                            continue
                        if data == DONE_SENTINEL:
                            break
                        try:
                            payload = json.loads(data)
                        except ValueError:
                            continue
                        fragment = extract_delta_content(payload)
                        if fragment:
                            await on_chunk(fragment)
        except httpx.HTTPError as e:
            logger.error(f"Stream request to {endpoint} failed: {e!r}")
            await on_chunk(f"\n[Network Error: {e}]")
