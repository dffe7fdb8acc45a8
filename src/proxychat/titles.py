import logging

import httpx

from proxychat.client import CompletionClient, build_request_body, extract_message_content
from proxychat.config import DEFAULT_MODEL, DEFAULT_TITLE, ChatModel
from proxychat.prompts import render_title_prompt

logger = logging.getLogger(__name__)

QUOTE_PAIRS = {'"': '"', "'": "'", "“": "”", "«": "»"}
QUOTE_CHARS = frozenset(QUOTE_PAIRS) | frozenset(QUOTE_PAIRS.values())


def strip_surrounding_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and QUOTE_PAIRS.get(text[0]) == text[-1]:
        text = text[1:-1].strip()
    if text and all(ch in QUOTE_CHARS for ch in text):
        return ""
    return text


class TitleSummarizer:
    def __init__(self, client: CompletionClient | None = None, model: ChatModel = DEFAULT_MODEL):
        self.client = client or CompletionClient()
        self.model = model

    async def generate(self, user_message: str, api_key: str) -> str:
        messages = [{"role": "user", "content": render_title_prompt(user_message)}]
        body = build_request_body(self.model.model_id, messages)

        try:
            response = await self.client.post_json(self.model.endpoint, api_key, body)
            if not response.is_success:
                logger.warning(f"Title request failed: {response.status_code}")
                return DEFAULT_TITLE
            content = extract_message_content(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Title request failed: {e!r}")
            return DEFAULT_TITLE

        title = strip_surrounding_quotes(content)
        return title or DEFAULT_TITLE


async def generate_chat_title(
    user_message: str,
    api_key: str,
    client: CompletionClient | None = None,
) -> str:
    return await TitleSummarizer(client).generate(user_message, api_key)
