"""Configuration helpers for the Garden Tap game."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

try:  # pragma: no cover - optional dependency
    from dotenv import load_dotenv  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    load_dotenv = None  # type: ignore


if load_dotenv:
    load_dotenv()


@dataclass(slots=True)
class Settings:
    """Environment driven settings for the game runtime."""

    BOT_TOKEN: str = os.getenv("BOT_TOKEN", "")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./garden.db")
    DEFAULT_MAX_ENERGY: int = int(os.getenv("DEFAULT_MAX_ENERGY", "100"))
    ENERGY_REFILL_SECONDS: int = int(os.getenv("ENERGY_REFILL_SECONDS", "60"))
    STARTER_TOOL_ID: int = int(os.getenv("STARTER_TOOL_ID", "1"))
    STARTER_LOCATION_ID: int = int(os.getenv("STARTER_LOCATION_ID", "1"))
    REFERRAL_REWARD: int = int(os.getenv("REFERRAL_REWARD", "500"))
    TAP_RATE_BASE: int = int(os.getenv("TAP_RATE_BASE", "10"))
    LOG_JSON: bool = os.getenv("LOG_JSON", "0") == "1"
    WEBAPP_HOST: str = os.getenv("WEBAPP_HOST", "0.0.0.0")
    WEBAPP_PORT: int = int(os.getenv("WEBAPP_PORT", "8000"))


SETTINGS = Settings()

_RESERVED_RECORD_KEYS = {
    "args",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


class JsonLogFormatter(logging.Formatter):
    """Formatter that emits structured JSON lines for easier ingestion."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short implementation
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in payload or key in _RESERVED_RECORD_KEYS:
                continue
            payload.setdefault("extras", {})[key] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: int = logging.INFO, json_lines: bool | None = None) -> None:
    """Configure application wide logging."""

    use_json = SETTINGS.LOG_JSON if json_lines is None else json_lines
    if use_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonLogFormatter())
        logging.basicConfig(level=level, handlers=[handler], force=True)
    else:
        logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


LOGGER = logging.getLogger("garden_tap")
