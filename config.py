"""
config.py
---------
Centralised configuration management for the Schema Translator.

Loads settings from environment variables (with .env file support via
python-dotenv). Provides typed settings as frozen dataclasses so the
configuration is immutable at runtime.

Design Decision:
    Class-level defaults mean the engine works without any .env file;
    environment variables override them per deployment.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConversionConfig:
    """Schema conversion settings."""
    # "default" or "experimental_postgres"; see core.type_mapper.TargetDialect
    target_dialect: str = field(
        default_factory=lambda: os.getenv("TARGET_DIALECT", "default").strip().lower()
    )
    protect_ids: bool = field(default_factory=lambda: _env_flag("PROTECT_IDS"))
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    log_file: str | None = field(
        default_factory=lambda: os.getenv("LOG_FILE")  # None → log to stderr only
    )


@dataclass(frozen=True)
class AppConfig:
    """Root application configuration."""
    conversion: ConversionConfig = field(default_factory=ConversionConfig)
    app_name: str = "Schema Translator"
    app_version: str = "1.0.0"


def load_config() -> AppConfig:
    """
    Build and return the application configuration.

    Returns:
        AppConfig: Fully populated (and frozen) configuration object.

    Example::

        cfg = load_config()
        print(cfg.conversion.target_dialect)   # "default"
    """
    return AppConfig()


# Module-level singleton used throughout the application
CONFIG: AppConfig = load_config()


def get_log_level() -> int:
    """Convert string log level from config to logging module constant."""
    level = getattr(logging, CONFIG.conversion.log_level, None)
    if not isinstance(level, int):
        return logging.INFO
    return level
