import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

# Load .env once, globally
load_dotenv()

T = TypeVar("T")

ENV_PREFIX = "INBOX_CLASSIFIER_"


def _env(key: str, default: T, cast: Callable[[str], T]) -> T:
    """
    Read INBOX_CLASSIFIER_<key> from the environment.
    Empty values fall back to the default.
    """
    name = ENV_PREFIX + key
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc


def _as_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(value)


def _as_optional_str(value: str) -> Optional[str]:
    return value or None


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    # None means the official OpenAI endpoint; set for OpenRouter and friends.
    openai_base_url: Optional[str] = None
    model: str = "gpt-4"
    temperature: float = 0.1
    max_tokens: int = 200
    fetch_limit: int = 15
    request_timeout: float = 30.0
    log_level: str = "INFO"
    log_json: bool = True


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        openai_api_key=_env("OPENAI_API_KEY", None, _as_optional_str),
        openai_base_url=_env("OPENAI_BASE_URL", None, _as_optional_str),
        model=_env("MODEL", Settings.model, str),
        temperature=_env("TEMPERATURE", Settings.temperature, float),
        max_tokens=_env("MAX_TOKENS", Settings.max_tokens, int),
        fetch_limit=_env("FETCH_LIMIT", Settings.fetch_limit, int),
        request_timeout=_env("REQUEST_TIMEOUT", Settings.request_timeout, float),
        log_level=_env("LOG_LEVEL", Settings.log_level, str).upper(),
        log_json=_env("LOG_JSON", Settings.log_json, _as_bool),
    )
