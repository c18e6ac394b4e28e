"""Application configuration helpers."""

import os
import sys
from pathlib import Path

APP_NAME = "Hiking Map"
MAX_GPX_BYTES = 50 * 1024 * 1024
DEFAULT_FOLDER_COLOR = "#FF6600"
FOLDER_CONFIG_NAME = ".hiking-map"
FIT_PADDING = (20, 20)


def parse_env_bool(value, default=False):
    """Parse a boolean-like environment value with a fallback default."""
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_env_int(name, default):
    """Parse an integer environment value with fallback."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def parse_env_float(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def is_dev_mode() -> bool:
    return parse_env_bool(os.getenv("HIKING_MAP_DEV"), default=False)


def get_app_data_path(platform: str | None = None) -> Path:
    """Return the per-user data directory.

    `HIKING_MAP_HOME` wins when set. Otherwise the directory follows the
    platform convention, with a separate "Dev" directory in dev mode.
    """
    override = os.getenv("HIKING_MAP_HOME", "").strip()
    if override:
        return Path(override).expanduser()

    platform = platform or sys.platform
    name = f"{APP_NAME} Dev" if is_dev_mode() else APP_NAME
    home = Path.home()
    if platform == "darwin":
        return home / "Library" / "Application Support" / name
    if platform == "win32":
        return home / "AppData" / "Roaming" / name
    return home / (".hiking-map-dev" if is_dev_mode() else ".hiking-map")


def get_gpx_root() -> Path:
    return get_app_data_path() / "gpx"


def get_settings_path() -> Path:
    return get_app_data_path() / "settings.json"


def get_log_level() -> str:
    level = os.getenv("HIKING_MAP_LOG_LEVEL", "INFO").strip().upper()
    if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return level
    return "INFO"


def get_preview_port() -> int:
    port = parse_env_int("HIKING_MAP_PREVIEW_PORT", 3333)
    if 0 < port < 65535:
        return port
    return 3333


def get_save_delay_seconds() -> float:
    """Quiet period before a map-position change is written to disk."""
    return max(0.0, parse_env_float("HIKING_MAP_SAVE_DELAY_SECONDS", 1.0))
