from proxychat.client import CompletionClient
from proxychat.config import ChatConfig, ChatModel, ConfigError, resolve_model
from proxychat.controller import SessionController
from proxychat.sessions import ChatMessage, ChatSession, SessionError, SessionStore
from proxychat.titles import TitleSummarizer, generate_chat_title

__all__ = [
    "ChatConfig",
    "ChatMessage",
    "ChatModel",
    "ChatSession",
    "CompletionClient",
    "ConfigError",
    "SessionController",
    "SessionError",
    "SessionStore",
    "TitleSummarizer",
    "generate_chat_title",
    "resolve_model",
]
