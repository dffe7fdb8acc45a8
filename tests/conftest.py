import json
from typing import Callable

import httpx
import pytest

from proxychat.client import CompletionClient
from proxychat.config import ChatConfig
from proxychat.sessions.store import SessionStore


def _completion_payload(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _sse_body(*fragments: str, done: bool = True) -> bytes:
    lines = []
    for fragment in fragments:
        frame = {"choices": [{"delta": {"content": fragment}}]}
        lines.append(f"data: {json.dumps(frame)}\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


@pytest.fixture
def config(tmp_path) -> ChatConfig:
    return ChatConfig(
        api_key="test-key",
        data_dir=str(tmp_path),
        indicator_interval_s=0.01,
        reveal_delay_s=0.0,
    )


@pytest.fixture
def store(config) -> SessionStore:
    return SessionStore(config.sessions_path)


@pytest.fixture
def make_client(config) -> Callable[..., CompletionClient]:
    def factory(handler) -> CompletionClient:
        return CompletionClient(config, transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def completion_payload():
    return _completion_payload


@pytest.fixture
def sse_body():
    return _sse_body
