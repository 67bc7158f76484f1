"""Runtime configuration read from environment variables"""
import os
from dataclasses import dataclass


class ImproperlyConfigured(Exception):
    pass


def get_env(var_name: str, default=None, required: bool = False):
    value = os.environ.get(var_name, default)
    if required and value in (None, ""):
        raise ImproperlyConfigured(f"Missing required environment variable: {var_name}")
    return value


def _get_int(var_name: str, default: int) -> int:
    raw = get_env(var_name, str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ImproperlyConfigured(f"{var_name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    sweep_interval_seconds: int
    reminder_window_hours: int
    event_queue_maxsize: int
    log_level: str


def load_settings() -> Settings:
    # In production SECRET_KEY must come from the environment.
    return Settings(
        secret_key=get_env("SECRET_KEY", "your-secret-key-keep-it-secret"),
        algorithm=get_env("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=_get_int("ACCESS_TOKEN_EXPIRE_MINUTES", 30),
        sweep_interval_seconds=_get_int("SWEEP_INTERVAL_SECONDS", 300),
        reminder_window_hours=_get_int("PAYMENT_REMINDER_WINDOW_HOURS", 24),
        event_queue_maxsize=_get_int("EVENT_QUEUE_MAXSIZE", 1000),
        log_level=get_env("LOG_LEVEL", "INFO").upper(),
    )


settings = load_settings()
