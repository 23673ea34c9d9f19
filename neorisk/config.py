"""Configuration module for NEORisk.

Loads environment-backed configuration with defaults suited to local runs
against the NASA DEMO_KEY. Uses python-dotenv so a `.env` file in the working
directory is honoured without overriding the real environment.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import logging
import os

from dotenv import load_dotenv

# Load environment variables from a `.env` file if present.
load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)


@dataclass(frozen=True)
class Settings:
    """Container for tunable runtime parameters."""

    debug: bool = bool(int(os.getenv("NEORISK_DEBUG", "0")))
    nasa_api_key: str = os.getenv("NASA_API_KEY", "DEMO_KEY")
    use_live_apis: bool = bool(int(os.getenv("NEORISK_USE_LIVE_APIS", "1")))
    request_timeout: float = float(os.getenv("NEORISK_REQUEST_TIMEOUT", "10"))
    alert_risk_score: int = int(os.getenv("NEORISK_ALERT_RISK_SCORE", "50"))
    alert_torino_level: int = int(os.getenv("NEORISK_ALERT_TORINO_LEVEL", "2"))
    log_level: str = os.getenv("NEORISK_LOG_LEVEL", "INFO")


def get_settings() -> Settings:
    """Factory returning immutable settings instance."""

    return Settings()


def configure_logging(settings: Settings) -> None:
    """Install a root handler if none exists and set the package log level."""

    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logging.getLogger("neorisk").setLevel(level)
