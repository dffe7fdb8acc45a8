from proxychat.config import ChatModel, ConfigError, resolve_model
from proxychat.controller import SessionController


def format_session_line(session, active: bool) -> str:
    marker = "*" if active else " "
    count = len(session.messages)
    return f" {marker} {session.id:>3}  {session.title}  ({count} messages, {session.model.display_name})"


class BuiltinCommands:
    def __init__(self, controller: SessionController):
        self.controller = controller
        self._handlers = {
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "new": self.cmd_new,
            "sessions": self.cmd_sessions,
            "switch": self.cmd_switch,
            "delete": self.cmd_delete,
            "model": self.cmd_model,
            "models": self.cmd_models,
            "title": self.cmd_title,
            "help": self.cmd_help,
        }

    def list_commands(self) -> list[str]:
        return sorted(self._handlers.keys())

    def has_command(self, name: str) -> bool:
        return name in self._handlers

    def handle(self, name: str, args: str) -> bool:
        handler = self._handlers.get(name)
        if not handler:
            return True
        return handler(args)

    def cmd_quit(self, args: str) -> bool:
        print("👋 Goodbye!")
        return False

    def cmd_new(self, args: str) -> bool:
        model = None
        if args:
            try:
                model = resolve_model(args)
            except ConfigError as e:
                print(f"❌ {e}")
                return True
        session = self.controller.start_new_chat(model)
        print(f"✅ New chat {session.id} ({session.model.display_name})")
        return True

    def cmd_sessions(self, args: str) -> bool:
        sessions = self.controller.sessions
        if not sessions:
            print("No saved chats")
            return True
        print("Chats:")
        for session in sessions:
            print(format_session_line(session, session is self.controller.current))
        return True

    def _parse_id(self, args: str, usage: str) -> int | None:
        try:
            return int(args)
        except ValueError:
            print(f"Usage: {usage}")
            return None

    def cmd_switch(self, args: str) -> bool:
        session_id = self._parse_id(args, "/switch <id>")
        if session_id is None:
            return True
        session = self.controller.select_session(session_id)
        if session is None:
            print(f"❌ Chat {session_id} not found")
            return True
        print(f"✅ Switched to chat {session.id}: {session.title}")
        for message in session.messages:
            speaker = "You" if message.is_user else "Assistant"
            print(f"{speaker}: {message.text}")
        return True

    def cmd_delete(self, args: str) -> bool:
        session_id = self._parse_id(args, "/delete <id>")
        if session_id is None:
            return True
        if not self.controller.delete_session(session_id):
            print(f"❌ Chat {session_id} not found")
            return True
        print(f"✅ Deleted chat {session_id}; active chat is {self.controller.current.id}")
        return True

    def cmd_model(self, args: str) -> bool:
        if not args:
            print(f"Current model: {self.controller.current.model.display_name}")
            return True
        try:
            model = resolve_model(args)
        except ConfigError as e:
            print(f"❌ {e}")
            return True
        self.controller.set_model(model)
        print(f"✅ Switched to model: {model.display_name}")
        return True

    def cmd_models(self, args: str) -> bool:
        print("Models:")
        for model in ChatModel:
            marker = "*" if model is self.controller.current.model else " "
            print(f" {marker} {model.value:<16} {model.display_name} ({model.model_id})")
        return True

    def cmd_title(self, args: str) -> bool:
        print(f"Title: {self.controller.current.title}")
        return True

    def cmd_help(self, args: str) -> bool:
        print("\nCommands:")
        for name in self.list_commands():
            print(f"  /{name}")
        print()
        return True
