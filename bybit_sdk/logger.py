"""Logging interface and implementations."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    NONE = "none"


_SEVERITY = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
    LogLevel.NONE: 4,
}


def redact(value: Optional[str], visible: int = 4) -> str:
    """
    Mask a credential for display.

    Args:
        value: Secret-ish string (API key, token)
        visible: Number of leading characters to keep

    Returns:
        e.g. ``"abcd****"``; ``"<none>"`` when value is empty
    """
    if not value:
        return "<none>"
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "*" * (len(value) - visible)


class Logger(ABC):
    """Abstract logger interface."""

    @abstractmethod
    def debug(self, message: str, *args: Any) -> None:
        pass

    @abstractmethod
    def info(self, message: str, *args: Any) -> None:
        pass

    @abstractmethod
    def warn(self, message: str, *args: Any) -> None:
        pass

    @abstractmethod
    def error(self, message: str, *args: Any) -> None:
        pass


class ConsoleLogger(Logger):
    """Prints prefixed log lines to stdout, filtered by level."""

    def __init__(self, level: LogLevel = LogLevel.INFO, prefix: str = "[Bybit SDK]"):
        """
        Initialize console logger.

        Args:
            level: Minimum log level to display
            prefix: Prefix for log messages
        """
        self.level = LogLevel(level)
        self.prefix = prefix

    def _log(self, level: LogLevel, message: str, *args: Any) -> None:
        if level is LogLevel.NONE or _SEVERITY[level] < _SEVERITY[self.level]:
            return
        print(f"{self.prefix} {level.value.upper()}: {message}", *args)

    def debug(self, message: str, *args: Any) -> None:
        self._log(LogLevel.DEBUG, message, *args)

    def info(self, message: str, *args: Any) -> None:
        self._log(LogLevel.INFO, message, *args)

    def warn(self, message: str, *args: Any) -> None:
        self._log(LogLevel.WARN, message, *args)

    def error(self, message: str, *args: Any) -> None:
        self._log(LogLevel.ERROR, message, *args)

    def set_level(self, level: LogLevel) -> None:
        """Set log level."""
        self.level = LogLevel(level)

    def get_level(self) -> LogLevel:
        """Get current log level."""
        return self.level


class NoopLogger(Logger):
    """Discards everything."""

    def debug(self, message: str, *args: Any) -> None:
        pass

    def info(self, message: str, *args: Any) -> None:
        pass

    def warn(self, message: str, *args: Any) -> None:
        pass

    def error(self, message: str, *args: Any) -> None:
        pass
