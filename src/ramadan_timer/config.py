"""Configuration management."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

DEFAULT_API_BASE_URL = "https://api.aladhan.com/v1"


def _get_default_state_path() -> Path:
    """Get default persisted state path."""
    return Path.home() / ".config" / "ramadan-timer" / "state.json"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """Application configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Persisted state
    state_path: Path = field(default_factory=_get_default_state_path)

    # Upstream timings API
    api_base_url: str = DEFAULT_API_BASE_URL
    http_timeout: float = 10.0

    # Selection
    poll_interval_seconds: int = 60
    range_days: int = 4

    # Location
    geolocation_enabled: bool = True

    # Notifications
    notification_icon: str = ""

    @classmethod
    def from_env(cls) -> Self:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("RAMADAN_TIMER_HOST", "0.0.0.0"),
            port=int(os.getenv("RAMADAN_TIMER_PORT", "8080")),
            log_level=os.getenv("RAMADAN_TIMER_LOG_LEVEL", "INFO"),
            state_path=Path(
                os.getenv("RAMADAN_TIMER_STATE_PATH", str(_get_default_state_path()))
            ),
            api_base_url=os.getenv("RAMADAN_TIMER_API_BASE_URL", DEFAULT_API_BASE_URL),
            http_timeout=float(os.getenv("RAMADAN_TIMER_HTTP_TIMEOUT", "10")),
            poll_interval_seconds=int(os.getenv("RAMADAN_TIMER_POLL_INTERVAL", "60")),
            range_days=int(os.getenv("RAMADAN_TIMER_RANGE_DAYS", "4")),
            geolocation_enabled=_env_bool("RAMADAN_TIMER_GEOLOCATION", True),
            notification_icon=os.getenv("RAMADAN_TIMER_NOTIFICATION_ICON", ""),
        )


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get application configuration."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def setup_logging(level: str = "INFO") -> None:
    """Setup application logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
