"""Environment-driven settings and logging setup."""

import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from secret_scanner.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_STATE_FILE = "scan_states.json"
DEFAULT_MAX_SCAN_COMMITS = 100

NOISY_LOGGERS = ("urllib3", "github", "httpx", "httpcore")


@dataclass(frozen=True)
class Settings:
    github_token: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    scan_state_file: str = DEFAULT_STATE_FILE
    max_scan_commits: int = DEFAULT_MAX_SCAN_COMMITS
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            github_token=os.environ.get("GITHUB_TOKEN") or None,
            gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
            gemini_model=os.environ.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            scan_state_file=os.environ.get("SCAN_STATE_FILE", DEFAULT_STATE_FILE),
            max_scan_commits=_int_env("MAX_SCAN_COMMITS", DEFAULT_MAX_SCAN_COMMITS),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=_int_env("PORT", 8080),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def require_gemini_key(self) -> str:
        if not self.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY environment variable is required.")
        return self.gemini_api_key


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} env var {raw!r}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, using default {default}")
        return default
    return value


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
