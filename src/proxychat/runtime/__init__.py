from proxychat.runtime.builtins import BuiltinCommands
from proxychat.runtime.repl import ChatREPL, ReplyRenderer
from proxychat.runtime.router import InputRouter, RouteResult

__all__ = ["BuiltinCommands", "ChatREPL", "InputRouter", "ReplyRenderer", "RouteResult"]
