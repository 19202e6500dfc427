import os
from typing import Any, Dict, Optional

from docrender.config.settings import get_value, load_dotenv_files, load_settings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_ENV = {
    "DOCRENDER_USER_AGENT": DEFAULT_USER_AGENT,
    "DOCRENDER_MAX_WORKERS": 4,
    "DOCRENDER_HTTP_TIMEOUT": 30.0,
    "DOCRENDER_ENGINE": None,
    "DOCRENDER_LOG_LEVEL": "INFO",
}

"""
Environment Configuration

Central access point for docrender configuration. Values are looked up in this order:

- Environment variables (including those loaded from `.env` files)
- The settings file (`~/.config/docrender/settings.yaml`, or `DOCRENDER_SETTINGS`)
- Built-in defaults (`DEFAULT_ENV`)
"""


class Environment(object):
    """
    Class-level accessors for configuration values with type conversion.

    Settings are loaded lazily on first access and cached on the class;
    call `reset()` to force a reload (tests use this after patching the environment).
    """

    settings: Optional[Dict[str, Any]] = None

    @classmethod
    def load_settings(cls):
        load_dotenv_files()
        cls.settings = load_settings()

    @classmethod
    def reset(cls):
        cls.settings = None

    @classmethod
    def get_settings(cls) -> Dict[str, Any]:
        if cls.settings is None:
            cls.load_settings()
        assert cls.settings is not None
        return cls.settings

    @classmethod
    def get(cls, key: str, default: Any = None):
        return get_value(key, cls.get_settings(), DEFAULT_ENV, default)

    @classmethod
    def _get_int_setting(cls, key: str, default: int, minimum: int = 1) -> int:
        raw = cls.get(key, default)
        try:
            value = int(raw)
        except (TypeError, ValueError):
            return default
        return value if value >= minimum else default

    @classmethod
    def _get_float_setting(cls, key: str, default: float) -> float:
        raw = cls.get(key, default)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return default
        return value if value > 0 else default

    @classmethod
    def get_user_agent(cls) -> str:
        """
        User-Agent header sent with every document and resource fetch.
        """
        return str(cls.get("DOCRENDER_USER_AGENT") or DEFAULT_USER_AGENT)

    @classmethod
    def get_max_workers(cls) -> int:
        """
        Maximum number of worker processes used for parallel render calls.
        """
        return cls._get_int_setting("DOCRENDER_MAX_WORKERS", 4)

    @classmethod
    def get_http_timeout(cls) -> float:
        return cls._get_float_setting("DOCRENDER_HTTP_TIMEOUT", 30.0)

    @classmethod
    def get_engine_factory(cls) -> str | None:
        """
        Dotted path (`package.module:callable`) of the engine factory used by the CLI.
        """
        value = cls.get("DOCRENDER_ENGINE")
        return str(value) if value else None

    @classmethod
    def get_log_level(cls) -> str:
        """Return desired log level string.

        Priority:
        1) LOG_LEVEL env
        2) If DEBUG env is truthy, return "DEBUG"
        3) DOCRENDER_LOG_LEVEL env (default "INFO")
        """
        level = os.getenv("LOG_LEVEL")
        if level:
            return str(level).upper()
        debug_env = os.getenv("DEBUG")
        if debug_env and debug_env.lower() not in ("0", "false", "no", "off", ""):
            return "DEBUG"
        return os.getenv("DOCRENDER_LOG_LEVEL", "INFO").upper()
