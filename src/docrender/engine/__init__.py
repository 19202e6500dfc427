from .contract import (
    EngineBinding,
    EngineFactory,
    EngineHooks,
    LogLevel,
    LogSink,
    OutputFormat,
    RequiredResource,
    ResourceType,
    load_engine_factory,
)
from .log_state import LogConfig, LogState, logging_sink
from .module import EngineModule

__all__ = [
    "EngineBinding",
    "EngineFactory",
    "EngineHooks",
    "EngineModule",
    "LogConfig",
    "LogLevel",
    "LogSink",
    "LogState",
    "OutputFormat",
    "RequiredResource",
    "ResourceType",
    "load_engine_factory",
    "logging_sink",
]
