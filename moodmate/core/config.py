"""Application settings for the MoodMate backend."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_EMOTION_MODEL_URL = (
    "https://api-inference.huggingface.co/models/j-hartmann/emotion-english-distilroberta-base"
)


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_origins(name: str) -> tuple[str, ...]:
    raw = _env_str(name, "*")
    if raw == "*":
        return ("*",)
    return tuple(x.strip() for x in raw.split(",") if x.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str = "MoodMate API"
    allow_origins: tuple[str, ...] = ("*",)  # demo; lock down in production
    log_level: str = "INFO"
    context_token_budget: int = 15000
    default_region: str = "global"

    llm_provider: str = "together"  # "together" | "ollama"
    llm_model: str = "mistralai/Mixtral-8x7B-Instruct-v0.1"
    llm_api_key: Optional[str] = None
    llm_endpoint: Optional[str] = None
    llm_temperature: float = 0.7
    llm_max_tokens: int = 100
    llm_timeout: float = 30.0

    emotion_model_url: str = DEFAULT_EMOTION_MODEL_URL
    huggingface_api_key: Optional[str] = None
    emotion_timeout: float = 10.0
    emotion_retry_attempts: int = 2
    emotion_retry_delay: float = 0.5

    session_backend: str = "memory"  # "memory" | "firestore"
    firestore_collection: str = "sessions"
    firebase_config: Optional[str] = None
    firebase_key_path: Optional[str] = None
    store_timeout: float = 10.0
    session_max_waiters: int = 4
    session_lock_timeout: float = 60.0

    event_log_limit: int = 200


def load_settings() -> Settings:
    """Read settings from the environment (and a local .env, if present)."""
    return Settings(
        app_name=_env_str("APP_NAME", "MoodMate API"),
        allow_origins=_env_origins("CORS_ALLOW_ORIGINS"),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        context_token_budget=_env_int("CONTEXT_TOKEN_BUDGET", 15000),
        default_region=_env_str("DEFAULT_REGION", "global"),
        llm_provider=_env_str("LLM_PROVIDER", "together").lower(),
        llm_model=_env_str("LLM_MODEL", "mistralai/Mixtral-8x7B-Instruct-v0.1"),
        llm_api_key=_env_str("LLM_API_KEY") or _env_str("TOGETHER_API_KEY") or None,
        llm_endpoint=_env_str("LLM_ENDPOINT") or None,
        llm_temperature=_env_float("LLM_TEMPERATURE", 0.7),
        llm_max_tokens=_env_int("LLM_MAX_TOKENS", 100),
        llm_timeout=_env_float("LLM_TIMEOUT", 30.0),
        emotion_model_url=_env_str("EMOTION_MODEL_URL", DEFAULT_EMOTION_MODEL_URL),
        huggingface_api_key=_env_str("HUGGINGFACE_API_KEY") or None,
        emotion_timeout=_env_float("EMOTION_TIMEOUT", 10.0),
        emotion_retry_attempts=max(1, _env_int("EMOTION_RETRY_ATTEMPTS", 2)),
        emotion_retry_delay=_env_float("EMOTION_RETRY_DELAY", 0.5),
        session_backend=_env_str("SESSION_BACKEND", "memory").lower(),
        firestore_collection=_env_str("FIRESTORE_COLLECTION", "sessions"),
        firebase_config=_env_str("FIREBASE_CONFIG") or None,
        firebase_key_path=_env_str("FIREBASE_KEY_PATH") or None,
        store_timeout=_env_float("STORE_TIMEOUT", 10.0),
        session_max_waiters=max(0, _env_int("SESSION_MAX_WAITERS", 4)),
        session_lock_timeout=_env_float("SESSION_LOCK_TIMEOUT", 60.0),
        event_log_limit=_env_int("EVENT_LOG_LIMIT", 200),
    )


settings = load_settings()
