from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    bot_token: str
    owner_telegram_id: int
    timezone: str
    db_path: Path
    log_level: str = "INFO"

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


def load_settings(dotenv: bool = True) -> Settings:
    """Read settings from the environment (and .env, unless dotenv=False)."""
    if dotenv:
        load_dotenv()

    bot_token = os.getenv("BOT_TOKEN", "").strip()
    owner_raw = os.getenv("OWNER_TELEGRAM_ID", "0").strip()
    tz = os.getenv("TZ", "Europe/Helsinki").strip() or "Europe/Helsinki"
    db_raw = os.getenv("DB_PATH", "data/personal_os.db").strip() or "data/personal_os.db"
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    if not bot_token:
        raise RuntimeError("BOT_TOKEN missing in .env")
    try:
        owner_id = int(owner_raw)
    except ValueError:
        raise RuntimeError("OWNER_TELEGRAM_ID must be an integer") from None
    if owner_id <= 0:
        raise RuntimeError("OWNER_TELEGRAM_ID missing/invalid in .env")
    if log_level not in _LOG_LEVELS:
        raise RuntimeError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")

    # db_path may be relative; main() resolves it against the repo root
    return Settings(
        bot_token=bot_token,
        owner_telegram_id=owner_id,
        timezone=tz,
        db_path=Path(db_raw),
        log_level=log_level,
    )
