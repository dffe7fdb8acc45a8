from pathlib import Path

import pytest

from proxychat import cli
from proxychat.cli import _main
from proxychat.config import ChatModel
from proxychat.sessions.schema import ChatMessage, ChatSession
from proxychat.sessions.store import SessionStore


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    SessionStore(tmp_path / "chats.json").save(
        [
            ChatSession(
                id=3,
                title="Recipes",
                messages=[ChatMessage(id=1, text="soup?", is_user=True)],
            )
        ]
    )
    return tmp_path


def test_models_lists_catalog(capsys):
    assert _main(["models"]) == 0
    out = capsys.readouterr().out
    assert "gpt-5-nano" in out
    assert "deepseek/deepseek-r1-0528:free" in out


def test_sessions_lists_saved_chats(data_dir, capsys):
    assert _main(["--data-dir", str(data_dir), "sessions"]) == 0
    assert "Recipes" in capsys.readouterr().out


def test_delete_removes_chat(data_dir):
    assert _main(["--data-dir", str(data_dir), "delete", "3"]) == 0
    assert SessionStore(data_dir / "chats.json").load() == []


def test_delete_unknown_chat_fails(data_dir, capsys):
    assert _main(["--data-dir", str(data_dir), "delete", "42"]) == 1
    assert "not found" in capsys.readouterr().err


def test_chat_without_api_key_fails(data_dir, monkeypatch, capsys):
    monkeypatch.delenv("PROXYAPI_KEY", raising=False)
    assert _main(["--data-dir", str(data_dir), "chat", "-m", "hello"]) == 1
    assert "PROXYAPI_KEY" in capsys.readouterr().err


def test_chat_with_unknown_model_fails(data_dir, monkeypatch, capsys):
    monkeypatch.setenv("PROXYAPI_KEY", "k")
    assert _main(["--data-dir", str(data_dir), "chat", "--model", "nope", "-m", "hi"]) == 1
    assert "Unknown model" in capsys.readouterr().err


def test_chat_model_flag_starts_new_chat(data_dir, monkeypatch):
    monkeypatch.setenv("PROXYAPI_KEY", "k")
    seen = {}

    async def fake_send_once(repl, message):
        seen["current"] = repl.controller.current
        seen["message"] = message

    monkeypatch.setattr(cli, "_send_once", fake_send_once)

    assert _main(["--data-dir", str(data_dir), "chat", "--model", "deepseek_r1", "-m", "hi"]) == 0

    assert seen["message"] == "hi"
    assert seen["current"].id == 4
    assert seen["current"].model is ChatModel.DEEPSEEK_R1
    assert SessionStore(data_dir / "chats.json").load()[0].model is ChatModel.GPT5
