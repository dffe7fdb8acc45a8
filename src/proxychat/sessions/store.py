import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from proxychat.sessions.schema import ChatSession

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class SessionError(Exception):
    pass


def load_document(path: str | Path) -> Any | None:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Unreadable session document {path}: {e}")
        return None


def atomic_write_document(path: str | Path, data: Any) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = target.with_suffix(f"{target.suffix}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, ensure_ascii=False)
    os.replace(tmp_path, target)


class SessionStore:
    """Whole-collection JSON persistence for chat sessions.

    Every save replaces the document; empty sessions are dropped both on the
    way out and on the way in.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def save(self, sessions: Iterable[ChatSession]) -> None:
        kept = [session for session in sessions if not session.is_empty]
        payload = {
            "version": STORE_VERSION,
            "sessions": [session.model_dump(mode="json") for session in kept],
        }
        atomic_write_document(self.path, payload)
        logger.debug(f"Saved {len(kept)} sessions to {self.path}")

    def load(self) -> list[ChatSession]:
        data = load_document(self.path)
        if data is None:
            return []

        if isinstance(data, list):
            records = data
        elif isinstance(data, dict):
            records = data.get("sessions") or []
        else:
            logger.warning(f"Unexpected session document shape in {self.path}")
            return []

        sessions: list[ChatSession] = []
        seen: set[int] = set()
        for record in records:
            try:
                session = ChatSession.model_validate(record)
            except ValidationError as e:
                logger.warning(f"Skipping invalid session record: {e}")
                continue
            if session.is_empty or session.id in seen:
                continue
            seen.add(session.id)
            sessions.append(session)

        logger.info(f"Loaded {len(sessions)} sessions from {self.path}")
        return sessions
