import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

OPENAI_ENDPOINT = "https://api.proxyapi.ru/openai/v1/chat/completions"
OPENROUTER_ENDPOINT = "https://api.proxyapi.ru/openrouter/v1/chat/completions"

DEFAULT_TITLE = "New Chat"
SESSIONS_FILENAME = "chats.json"


class ConfigError(Exception):
    pass


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name, default)


@dataclass(frozen=True, slots=True)
class ModelSpec:
    display_name: str
    model_id: str
    endpoint: str


class ChatModel(str, Enum):
    GPT5 = "gpt5"
    XIAOMI = "xiaomi"
    GLM4_AIR = "glm4_air"
    DOLPHIN_MISTRAL = "dolphin_mistral"
    DEEPSEEK_R1 = "deepseek_r1"

    @property
    def spec(self) -> ModelSpec:
        return MODEL_SPECS[self]

    @property
    def display_name(self) -> str:
        return self.spec.display_name

    @property
    def model_id(self) -> str:
        return self.spec.model_id

    @property
    def endpoint(self) -> str:
        return self.spec.endpoint


MODEL_SPECS: dict[ChatModel, ModelSpec] = {
    ChatModel.GPT5: ModelSpec("GPT-5 Nano", "gpt-5-nano", OPENAI_ENDPOINT),
    ChatModel.XIAOMI: ModelSpec(
        "Xiaomi Mimo", "xiaomi/mimo-v2-flash:free", OPENROUTER_ENDPOINT
    ),
    ChatModel.GLM4_AIR: ModelSpec(
        "GLM 4.5 Air", "z-ai/glm-4.5-air:free", OPENROUTER_ENDPOINT
    ),
    ChatModel.DOLPHIN_MISTRAL: ModelSpec(
        "Dolphin Mistral",
        "cognitivecomputations/dolphin-mistral-24b-venice-edition:free",
        OPENROUTER_ENDPOINT,
    ),
    ChatModel.DEEPSEEK_R1: ModelSpec(
        "DeepSeek R1", "deepseek/deepseek-r1-0528:free", OPENROUTER_ENDPOINT
    ),
}

DEFAULT_MODEL = ChatModel.GPT5


def resolve_model(name: str | ChatModel) -> ChatModel:
    """Resolve a member name, value, model id or display name to a ChatModel."""
    if isinstance(name, ChatModel):
        return name
    key = name.strip().lower()
    for model in ChatModel:
        candidates = {
            model.name.lower(),
            model.value,
            model.model_id.lower(),
            model.display_name.lower(),
        }
        if key in candidates:
            return model
    raise ConfigError(f"Unknown model: {name}")


def _default_model() -> ChatModel:
    name = get_optional_env("PROXYCHAT_MODEL", "")
    if not name:
        return DEFAULT_MODEL
    try:
        return resolve_model(name)
    except ConfigError:
        logger.warning(f"Ignoring unknown PROXYCHAT_MODEL={name!r}")
        return DEFAULT_MODEL


@dataclass
class ChatConfig:
    api_key: str = field(default_factory=lambda: get_optional_env("PROXYAPI_KEY", ""))
    data_dir: str = field(
        default_factory=lambda: get_optional_env("PROXYCHAT_DATA_DIR", "~/.proxychat")
    )
    model: ChatModel = field(default_factory=_default_model)
    stream: bool = True
    stream_with_history: bool = False
    history_limit: int = 20
    request_timeout_s: float = 60.0
    stream_connect_timeout_s: float = 30.0
    stream_read_timeout_s: float = 120.0
    indicator_interval_s: float = 0.4
    reveal_delay_s: float = 0.01

    @property
    def sessions_path(self) -> Path:
        return Path(self.data_dir).expanduser() / SESSIONS_FILENAME

    def validate(self) -> None:
        if not self.api_key:
            raise ConfigError("Required environment variable PROXYAPI_KEY is not set")
        if self.history_limit < 1:
            raise ConfigError("history_limit must be at least 1")
        if self.indicator_interval_s <= 0:
            raise ConfigError("indicator_interval_s must be positive")
        if self.reveal_delay_s < 0:
            raise ConfigError("reveal_delay_s must not be negative")
