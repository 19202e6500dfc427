"""Utility functions for reading configuration files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

SETTINGS_FILE = "settings.yaml"
MISSING_MESSAGE = "Missing required configuration value: {}"
NOT_GIVEN = object()


def get_system_file_path(filename: str) -> Path:
    """Return the path to the configuration file for the current OS."""
    import platform

    override = os.getenv("DOCRENDER_SETTINGS")
    if override and filename == SETTINGS_FILE:
        return Path(override).expanduser()

    os_name = platform.system()
    if os_name in {"Linux", "Darwin"}:
        return Path.home() / ".config" / "docrender" / filename
    elif os_name == "Windows":
        appdata = os.getenv("APPDATA")
        if appdata is not None:
            return Path(appdata) / "docrender" / filename
        return Path("data") / filename
    return Path("data") / filename


def load_dotenv_files(root: Path | None = None) -> None:
    """Load `.env`, `.env.<ENV>` and `.env.<ENV>.local` from the working directory."""
    from dotenv import load_dotenv

    project_root = root or Path.cwd()
    env_name = os.environ.get("ENV", "development")

    # Later files do not override values already present in the process environment
    env_files = [
        project_root / ".env",
        project_root / f".env.{env_name}",
        project_root / f".env.{env_name}.local",
    ]
    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file, override=False)


def load_settings() -> Dict[str, Any]:
    """Load settings from the YAML settings file, if present."""
    settings_file = get_system_file_path(SETTINGS_FILE)
    if not settings_file.exists():
        return {}
    with open(settings_file, "r") as f:
        settings = yaml.safe_load(f) or {}
    if not isinstance(settings, dict):
        raise ValueError(f"Settings file {settings_file} must contain a mapping")
    return settings


def get_value(
    key: str,
    settings: Dict[str, Any],
    default_env: Dict[str, Any],
    default: Any = NOT_GIVEN,
) -> Any:
    """Retrieve a configuration value from the environment, settings, or defaults.

    Environment variables take precedence over the settings file.
    """
    value = os.environ.get(key)
    if value is None or value == "":
        value = settings.get(key)

    if value is None:
        value = default_env.get(key, default)

    if value is not NOT_GIVEN:
        return value
    raise KeyError(MISSING_MESSAGE.format(key))
