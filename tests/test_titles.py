import json

import httpx
import pytest

from proxychat.config import DEFAULT_MODEL
from proxychat.titles import TitleSummarizer, generate_chat_title, strip_surrounding_quotes


class TestStripQuotes:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ('"Trip Planning"', "Trip Planning"),
            ("  'Trip Planning'  ", "Trip Planning"),
            ("«Планы на отпуск»", "Планы на отпуск"),
            ("“Smart quotes”", "Smart quotes"),
            ('"unbalanced', '"unbalanced'),
            ("No quotes", "No quotes"),
            ('"', ""),
            ('""', ""),
            ("«»", ""),
        ],
    )
    def test_strip(self, raw, expected):
        assert strip_surrounding_quotes(raw) == expected


class TestGenerateChatTitle:
    @pytest.mark.asyncio
    async def test_strips_surrounding_quotes(self, make_client, completion_payload):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion_payload('"Trip Planning"'))

        title = await generate_chat_title(
            "Help me plan a trip to Rome", "test-key", client=make_client(handler)
        )

        assert title == "Trip Planning"
        assert seen["url"] == DEFAULT_MODEL.endpoint
        assert seen["body"]["model"] == DEFAULT_MODEL.model_id
        [message] = seen["body"]["messages"]
        assert message["role"] == "user"
        assert "max 4 words" in message["content"]
        assert message["content"].endswith("Message: Help me plan a trip to Rome")

    @pytest.mark.asyncio
    async def test_failing_request_returns_default(self, make_client):
        client = make_client(lambda request: httpx.Response(500))
        assert await generate_chat_title("hello", "test-key", client=client) == "New Chat"

    @pytest.mark.asyncio
    async def test_transport_error_returns_default(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        summarizer = TitleSummarizer(make_client(handler))
        assert await summarizer.generate("hello", "test-key") == "New Chat"

    @pytest.mark.asyncio
    async def test_empty_content_returns_default(self, make_client, completion_payload):
        client = make_client(lambda request: httpx.Response(200, json=completion_payload('  ""  ')))
        assert await generate_chat_title("hello", "test-key", client=client) == "New Chat"

    @pytest.mark.asyncio
    async def test_malformed_body_returns_default(self, make_client):
        client = make_client(lambda request: httpx.Response(200, content=b"not json"))
        assert await generate_chat_title("hello", "test-key", client=client) == "New Chat"

    @pytest.mark.asyncio
    async def test_lone_quote_returns_default(self, make_client, completion_payload):
        client = make_client(lambda request: httpx.Response(200, json=completion_payload('"')))
        assert await generate_chat_title("hello", "test-key", client=client) == "New Chat"
