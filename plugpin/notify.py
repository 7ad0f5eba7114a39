"""
Notification Channel.

All progress, skip and failure messages of the engine go through a Notifier:
they are logged on the ``plugpin`` logger, kept in a history and forwarded to
an optional sink (e.g. a status window).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger("plugpin")

LOG_FORMAT = "%(levelname)s %(message)s"


@dataclass(frozen=True)
class Notice:
    """
    A single notification.

    Attributes:
        level: ``logging`` level
        message: Human-readable text
    """

    level: int
    message: str


class Notifier:
    """Non-blocking notification channel with info/warning/error severities."""

    def __init__(self, sink: Callable[[Notice], None] | None = None):
        self.sink = sink
        self.history: list[Notice] = []

    def notify(self, message: str, level: int = logging.INFO) -> None:
        notice = Notice(level, message)
        self.history.append(notice)
        logger.log(level, message)
        if self.sink is not None:
            self.sink(notice)

    def info(self, message: str) -> None:
        self.notify(message, logging.INFO)

    def warning(self, message: str) -> None:
        self.notify(message, logging.WARNING)

    def error(self, message: str) -> None:
        self.notify(message, logging.ERROR)

    def messages(self, level: int | None = None) -> list[str]:
        return [n.message for n in self.history if level is None or n.level == level]


def configure_logging(level: int | str = logging.INFO) -> None:
    """
    Configure console logging for command-line use.

    Args:
        level: Log level name or number
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)
