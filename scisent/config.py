"""
Project-wide configuration and directory structure.

This module defines the paths, endpoints and defaults used throughout
SciSent, plus a small Settings object that can be overridden through
environment variables.

Module Contents:
    APP_NAME: Application name for display purposes
    CONFIG_DIR: Per-user directory holding keys and caches
    CACHE_DIR: Directory for temporary files
    RENDER_DIR: Default output directory for rendered pages
    DEEPL_FREE_URL / DEEPL_PRO_URL: DeepL v2 translate endpoints

Environment overrides:
    SCISENT_MAX_WORKERS   page retrieval / render workers
    SCISENT_LOG_LEVEL     default log level for the CLI
    SCISENT_TARGET_LANG   default DeepL target language
    SCISENT_DEEPL_URL     DeepL endpoint override
    SCISENT_RENDER_WIDTH  default bitmap width in pixels

Example:
    >>> from scisent.config import load_settings
    >>> settings = load_settings()
    >>> print(settings.max_workers)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Application name for display and identification
APP_NAME = "SciSent"

# Per-user configuration directory (keys, caches)
CONFIG_DIR = Path.home() / ".scisent"

# Cache directory for temporary files
CACHE_DIR = CONFIG_DIR / "cache"

# Default output directory for rendered page bitmaps
RENDER_DIR = CACHE_DIR / "pages"

# DeepL v2 endpoints; free-plan keys end in ":fx"
DEEPL_FREE_URL = "https://api-free.deepl.com/v2/translate"
DEEPL_PRO_URL = "https://api.deepl.com/v2/translate"

DEFAULT_TARGET_LANG = "ZH"
DEFAULT_MAX_WORKERS = 4
DEFAULT_RENDER_WIDTH = 800
DEFAULT_LOG_LEVEL = "WARNING"
REQUEST_TIMEOUT = 30


@dataclass
class Settings:
    """Runtime settings resolved from the environment."""
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = DEFAULT_LOG_LEVEL
    target_lang: str = DEFAULT_TARGET_LANG
    deepl_url: Optional[str] = None
    render_width: int = DEFAULT_RENDER_WIDTH

    def to_dict(self) -> dict:
        return {
            "max_workers": self.max_workers,
            "log_level": self.log_level,
            "target_lang": self.target_lang,
            "deepl_url": self.deepl_url or "(auto)",
            "render_width": self.render_width,
        }


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value < 1:
        logger.warning("Ignoring %s=%r: must be >= 1", name, raw)
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        Settings with defaults for anything unset or invalid
    """
    env = os.environ if env is None else env
    return Settings(
        max_workers=_env_int(env, "SCISENT_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        log_level=(env.get("SCISENT_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        target_lang=(env.get("SCISENT_TARGET_LANG") or DEFAULT_TARGET_LANG).upper(),
        deepl_url=env.get("SCISENT_DEEPL_URL") or None,
        render_width=_env_int(env, "SCISENT_RENDER_WIDTH", DEFAULT_RENDER_WIDTH),
    )


def ensure_dirs() -> None:
    """Create the per-user directories if they do not exist yet."""
    for d in (CONFIG_DIR, CACHE_DIR, RENDER_DIR):
        d.mkdir(parents=True, exist_ok=True)
