from proxychat.sessions.schema import ChatMessage, ChatSession
from proxychat.sessions.store import SessionError, SessionStore

__all__ = ["ChatMessage", "ChatSession", "SessionError", "SessionStore"]
