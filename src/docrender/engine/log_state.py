from __future__ import annotations

import logging
from dataclasses import dataclass

from docrender.engine.contract import LogLevel, LogSink


@dataclass(frozen=True)
class LogConfig:
    level: LogLevel = LogLevel.NONE
    sink: LogSink | None = None


class LogState:
    """
    Current engine log configuration for one execution context.

    Engine-originated events are routed through `emit`, which forwards to the
    configured sink when the event's level passes the configured level.
    Only `EngineModule` mutates the level, so the engine's own setting and
    this mirror move together.
    """

    def __init__(self) -> None:
        self._config = LogConfig()

    @property
    def level(self) -> LogLevel:
        return self._config.level

    @property
    def sink(self) -> LogSink | None:
        return self._config.sink

    def snapshot(self) -> LogConfig:
        return self._config

    def set_level(self, level: LogLevel | int) -> None:
        self._config = LogConfig(level=LogLevel(level), sink=self._config.sink)

    def set_sink(self, sink: LogSink | None) -> None:
        self._config = LogConfig(level=self._config.level, sink=sink)

    def enabled_for(self, level: LogLevel | int) -> bool:
        current = self._config.level
        return current != LogLevel.NONE and int(level) <= int(current) and self._config.sink is not None

    def emit(self, level: LogLevel | int, message: str) -> None:
        sink = self._config.sink
        if sink is None or not self.enabled_for(level):
            return
        try:
            lvl = LogLevel(level)
        except ValueError:
            lvl = LogLevel.DEBUG
        sink(lvl, message)


def logging_sink(logger) -> LogSink:
    """Adapt a `logging.Logger` into an engine log sink."""
    mapping = {
        LogLevel.ERROR: logging.ERROR,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.INFO: logging.INFO,
        LogLevel.DEBUG: logging.DEBUG,
    }

    def sink(level: LogLevel, message: str) -> None:
        logger.log(mapping.get(level, logging.DEBUG), message)

    return sink
