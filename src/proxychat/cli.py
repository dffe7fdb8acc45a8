from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from proxychat.config import ChatConfig, ChatModel, ConfigError, resolve_model
from proxychat.controller import SessionController
from proxychat.runtime.builtins import format_session_line
from proxychat.runtime.repl import ChatREPL
from proxychat.sessions.store import SessionError, SessionStore

logger = logging.getLogger(__name__)


def main() -> int:
    load_dotenv()
    return _main(sys.argv[1:])


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="proxychat", description="proxychat - LLM chat client")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--data-dir", default=None, help="Directory holding chats.json")
    subparsers = parser.add_subparsers(dest="command", required=False)

    chat = subparsers.add_parser("chat", help="Start interactive chat (default)")
    chat.add_argument("--model", default=None, help="Model name (see `proxychat models`)")
    chat.add_argument("--no-stream", action="store_true", help="Fetch whole replies instead of streaming")
    chat.add_argument(
        "--stream-history",
        action="store_true",
        help="Send the conversation history with streamed requests",
    )
    chat.add_argument("--session", type=int, default=None, help="Open an existing chat by id")
    chat.add_argument("--message", "-m", help="Single prompt (non-interactive)")

    subparsers.add_parser("sessions", help="List saved chats")

    delete = subparsers.add_parser("delete", help="Delete a saved chat")
    delete.add_argument("session_id", type=int)

    subparsers.add_parser("models", help="List available models")

    return parser


def _main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    cmd = args.command or "chat"
    try:
        if cmd == "chat":
            return _cmd_chat(args)
        if cmd == "sessions":
            return _cmd_sessions(args)
        if cmd == "delete":
            return _cmd_delete(args)
        if cmd == "models":
            return _cmd_models(args)
    except (ConfigError, SessionError) as e:
        logger.error(f"{cmd} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_help(sys.stderr)
    return 2


def _config_from_args(args: argparse.Namespace) -> ChatConfig:
    config = ChatConfig()
    if args.data_dir:
        config.data_dir = args.data_dir
    if getattr(args, "model", None):
        config.model = resolve_model(args.model)
    if getattr(args, "no_stream", False):
        config.stream = False
    if getattr(args, "stream_history", False):
        config.stream_with_history = True
    return config


def _cmd_chat(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    config.validate()
    controller = SessionController(SessionStore(config.sessions_path), config=config)

    if args.session is not None:
        if controller.select_session(args.session) is None:
            raise SessionError(f"Chat {args.session} not found")
    elif args.model:
        controller.start_new_chat(config.model)

    repl = ChatREPL(controller)
    try:
        if args.message:
            asyncio.run(_send_once(repl, args.message))
        else:
            asyncio.run(repl.run())
    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted")
    return 0


async def _send_once(repl: ChatREPL, message: str) -> None:
    try:
        await repl.send(message)
        await repl.controller.wait_for_background()
    finally:
        await repl.controller.aclose()


def _cmd_sessions(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    sessions = SessionStore(config.sessions_path).load()
    if not sessions:
        print("No saved chats")
        return 0
    for session in sessions:
        print(format_session_line(session, active=False))
    return 0


def _cmd_delete(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    store = SessionStore(config.sessions_path)
    sessions = store.load()
    remaining = [session for session in sessions if session.id != args.session_id]
    if len(remaining) == len(sessions):
        raise SessionError(f"Chat {args.session_id} not found")
    store.save(remaining)
    print(f"✅ Deleted chat {args.session_id}")
    return 0


def _cmd_models(args: argparse.Namespace) -> int:
    for model in ChatModel:
        print(f"{model.value:<16} {model.display_name:<16} {model.model_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
