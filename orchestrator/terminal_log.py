"""Append-only, user-visible pipeline log."""

import logging
from typing import Callable, List

from contracts import LogEntry, LogLevel

logger = logging.getLogger("buildmind.pipeline")

_LOGGING_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARNING: logging.WARNING,
}

Subscriber = Callable[[LogEntry], None]


class TerminalLog:
    """Collects LogEntry lines, streams them to subscribers and mirrors them to logging."""

    def __init__(self):
        self._entries: List[LogEntry] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def add(self, source: str, message: str, level: LogLevel = LogLevel.INFO) -> LogEntry:
        entry = LogEntry(source=source, message=message, level=level)
        self._entries.append(entry)
        logger.log(_LOGGING_LEVELS.get(level, logging.INFO), "[%s] %s", source, message)
        for callback in self._subscribers:
            try:
                callback(entry)
            except Exception as e:
                logger.warning("Log subscriber failed: %s", e)
        return entry

    def info(self, source: str, message: str) -> LogEntry:
        return self.add(source, message, LogLevel.INFO)

    def success(self, source: str, message: str) -> LogEntry:
        return self.add(source, message, LogLevel.SUCCESS)

    def warning(self, source: str, message: str) -> LogEntry:
        return self.add(source, message, LogLevel.WARNING)

    def error(self, source: str, message: str) -> LogEntry:
        return self.add(source, message, LogLevel.ERROR)

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
