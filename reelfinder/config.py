"""Runtime settings read from the environment.

Values come from process environment variables, optionally seeded from a
``.env`` file in the working directory. The TMDb key is looked up under a
few historical names so existing deployments keep working.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import List

from dotenv import find_dotenv, load_dotenv
from loguru import logger

KEY_VARIABLES = ("TMDB_API_KEY", "TMDB_KEY", "TMDB_V3_KEY", "TMDB_TOKEN")


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        logger.warning(f"[Config] Ignoring non-integer {name}={raw!r}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        logger.warning(f"[Config] Ignoring non-numeric {name}={raw!r}")
        return default


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    language: str = "en-US"
    region: str = "CA"
    timeout: float = 10.0
    max_retries: int = 0
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))
        api_key = ""
        for name in KEY_VARIABLES:
            api_key = os.environ.get(name, "").strip()
            if api_key:
                break
        origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            api_key=api_key,
            language=os.environ.get("TMDB_LANGUAGE", "en-US"),
            region=os.environ.get("TMDB_REGION", "CA"),
            timeout=_float_env("TMDB_TIMEOUT", 10.0),
            max_retries=max(0, _int_env("TMDB_MAX_RETRIES", 0)),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or ["*"],
        )


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default stderr sink with one at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level)
