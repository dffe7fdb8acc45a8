import asyncio
import logging

from proxychat.controller import SessionController
from proxychat.events import (
    AssistantMessageEvent,
    EventEmitter,
    MessageAddedEvent,
    MessageTextEvent,
)
from proxychat.prompts import PLACEHOLDER_PREFIXES
from proxychat.runtime.builtins import BuiltinCommands
from proxychat.runtime.router import InputRouter

logger = logging.getLogger(__name__)


class ReplyRenderer:
    """Prints a reply incrementally from controller events."""

    def __init__(self, write=print):
        self._write = write
        self._printed: dict[int, int] = {}

    def __call__(self, event) -> None:
        if isinstance(event, MessageAddedEvent):
            if not event.is_user:
                self._printed[event.message_id] = -1
            return
        if isinstance(event, MessageTextEvent):
            if event.message_id not in self._printed:
                return
            if not event.text or event.text.startswith(PLACEHOLDER_PREFIXES):
                return
            self._emit(event.message_id, event.text)
            return
        if isinstance(event, AssistantMessageEvent):
            if event.message_id not in self._printed:
                return
            self._emit(event.message_id, event.content)
            self._printed.pop(event.message_id, None)
            self._write("")

    def _emit(self, message_id: int, text: str) -> None:
        printed = self._printed[message_id]
        if printed < 0:
            self._write("\n🤖 Assistant:", end=" ")
            printed = 0
        if len(text) > printed:
            self._write(text[printed:], end="", flush=True)
            printed = len(text)
        self._printed[message_id] = printed


class ChatREPL:
    def __init__(self, controller: SessionController):
        self.controller = controller
        self.controller.emitter = EventEmitter(ReplyRenderer())
        self.builtins = BuiltinCommands(controller)
        self.router = InputRouter(self.builtins)

    async def send(self, text: str) -> None:
        if not await self.controller.handle_send_message(text):
            print("(nothing sent)")

    async def run(self, initial_message: str | None = None) -> None:
        current = self.controller.current
        print(f"💬 proxychat started (chat {current.id}, model: {current.model.display_name})")
        print("Commands: /help for all commands")
        print()

        try:
            if initial_message:
                await self.send(initial_message)

            while True:
                try:
                    user_input = (await asyncio.to_thread(input, "\n> ")).strip()

                    if not user_input:
                        continue

                    route = self.router.route(user_input)
                    if route.kind == "builtin":
                        if not self.builtins.handle(route.name, route.args):
                            break
                        continue
                    if route.kind == "unknown":
                        print(f"Unknown command: /{route.name}. Type /help for available commands.")
                        continue

                    await self.send(route.args)

                except EOFError:
                    break
                except Exception as e:
                    logger.exception("Chat turn failed")
                    print(f"\n❌ Error: {e}")

            await self.controller.wait_for_background()
        finally:
            await self.controller.aclose()
