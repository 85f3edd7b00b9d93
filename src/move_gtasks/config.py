"""Runtime configuration.

Everything the tool needs to know about where it keeps state lives in a
single ``AppConfig`` built once at startup:

    <config dir>/move-gtasks/credentials.json - OAuth client credentials
    <config dir>/move-gtasks/token.json       - cached OAuth token

The config directory follows the platform convention (``%APPDATA%`` on
Windows, ``~/Library/Application Support`` on macOS, ``$XDG_CONFIG_HOME`` or
``~/.config`` elsewhere) and can be overridden with ``MOVE_GTASKS_CONFIG_DIR``.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

APP_NAME = "move-gtasks"
CONFIG_DIR_ENV = "MOVE_GTASKS_CONFIG_DIR"

DEFAULT_TASK_LIST = "My Tasks"
CALLBACK_HOST = "localhost"
CALLBACK_PORT = 42871
TASKS_SCOPE = "https://www.googleapis.com/auth/tasks"


@dataclass(frozen=True)
class AppConfig:
    """Paths and fixed settings shared by every component."""

    config_dir: Path
    task_list_name: str = DEFAULT_TASK_LIST
    callback_host: str = CALLBACK_HOST
    callback_port: int = CALLBACK_PORT
    scopes: tuple[str, ...] = field(default=(TASKS_SCOPE,))

    @property
    def credentials_path(self) -> Path:
        return self.config_dir / "credentials.json"

    @property
    def token_path(self) -> Path:
        return self.config_dir / "token.json"


def user_config_dir() -> Path:
    """Return the per-user configuration root for this platform.

    Raises:
        RuntimeError: If no home or application data directory can be found.
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise RuntimeError("%APPDATA% is not defined")
        return Path(appdata)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return Path.home() / ".config"


class ConfigError(Exception):
    """Raised when the config directory can't be set up."""

    pass


def ensure_config_dir(path: Path) -> Path:
    """Create the config directory (owner-only) if it doesn't exist.

    Returns:
        The directory path.

    Raises:
        ConfigError: If the directory can't be created.
    """
    try:
        path.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Unable to set up config directory {path}: {e}") from e
    return path


def load_config(create: bool = True) -> AppConfig:
    """Build the application configuration.

    Args:
        create: Create the config directory if it is missing.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        config_dir = Path(override).expanduser()
    else:
        config_dir = user_config_dir() / APP_NAME

    if create:
        ensure_config_dir(config_dir)
    return AppConfig(config_dir=config_dir)
