"""
Application configuration.

Settings are read from the environment after loading a ``.env`` file from the
project root. Nothing here opens connections; callers build their own store
handle from the returned ``Settings``.

Environment variables:
- SUPABASE_URL: Supabase project URL (required for the Supabase ledger store)
- SUPABASE_KEY: Supabase API key (use a server-side key only on the backend)
- JWT_SECRET: secret used to verify bearer tokens (required for the API)
- JWT_ALGORITHM: token signing algorithm (default: HS256)
- LOG_LEVEL: logging level name (default: INFO)
- CORS_ORIGINS: comma-separated allowed origins (default: *)
- LOW_STOCK_THRESHOLD_KG: low-stock flag threshold (default: 1000)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from produce_trading.domain.produce import LOW_STOCK_THRESHOLD_KG

_ENV_PATH = Path(__file__).parent.parent / ".env"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    jwt_secret: Optional[str]
    jwt_algorithm: str = "HS256"
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)
    low_stock_threshold_kg: int = LOW_STOCK_THRESHOLD_KG

    def require_supabase(self) -> Tuple[str, str]:
        """Return (url, key), failing loudly when either is unset."""

        if not self.supabase_url:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_URL. "
                "Set SUPABASE_URL to your Supabase project URL."
            )
        if not self.supabase_key:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_KEY. "
                "Set SUPABASE_KEY to your Supabase API key."
            )
        return self.supabase_url, self.supabase_key

    def require_jwt_secret(self) -> str:
        if not self.jwt_secret:
            raise RuntimeError(
                "Missing environment variable: JWT_SECRET. "
                "Set JWT_SECRET to the secret used to sign bearer tokens."
            )
        return self.jwt_secret


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ`` (the .env file is
            only loaded when reading the real environment).
    """

    if environ is None:
        load_dotenv(dotenv_path=_ENV_PATH)
        environ = os.environ

    origins = tuple(
        origin.strip()
        for origin in environ.get("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )
    threshold = environ.get("LOW_STOCK_THRESHOLD_KG")

    return Settings(
        supabase_url=environ.get("SUPABASE_URL"),
        supabase_key=environ.get("SUPABASE_KEY"),
        jwt_secret=environ.get("JWT_SECRET"),
        jwt_algorithm=environ.get("JWT_ALGORITHM", "HS256"),
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        cors_origins=origins or ("*",),
        low_stock_threshold_kg=int(threshold) if threshold else LOW_STOCK_THRESHOLD_KG,
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""

    root = logging.getLogger()
    if not any(getattr(h, "_produce_trading", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._produce_trading = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)


__all__ = ["Settings", "configure_logging", "load_settings"]
