"""
Runtime settings, read from the environment (and a local .env if present).
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger("playercipher.config").warning(
            f"Ignoring {name}={raw!r}: not a number, using {default}")
        return default


@dataclass
class Settings:
    cache_ttl: float = field(default_factory=lambda: _env_float("PLAYERCIPHER_CACHE_TTL", 3600.0))
    soft_budget_ms: float = field(default_factory=lambda: _env_float("PLAYERCIPHER_SOFT_BUDGET_MS", 50.0))
    hard_budget_ms: float = field(default_factory=lambda: _env_float("PLAYERCIPHER_HARD_BUDGET_MS", 100.0))
    fetch_timeout: float = field(default_factory=lambda: _env_float("PLAYERCIPHER_FETCH_TIMEOUT", 10.0))
    user_agent: str = field(default_factory=lambda: os.getenv("PLAYERCIPHER_USER_AGENT", DEFAULT_UA))
    log_level: str = field(default_factory=lambda: os.getenv("PLAYERCIPHER_LOG_LEVEL", "INFO"))


def configure_logging(settings: Settings | None = None):
    settings = settings or Settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
