"""Logging facade that mirrors log messages to observers.

Messages go to a regular :mod:`logging` logger and, when that logger has the
level enabled, are also published on the ``message_logged`` event of the
shared :class:`LogBroadcaster`. A UI can subscribe to that event to show a
live log pane.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from tji.core.events import Event

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_installed_handlers: list[logging.Handler] = []


class LogBroadcaster:
    """Shared owner of the ``message_logged`` event.

    Create one per application and pass it to every component that logs.
    All loggers handed out by the same broadcaster publish to the same
    subscribers.
    """

    def __init__(self) -> None:
        self.message_logged = Event("message_logged")

    def get_logger(self, name: str) -> "Log":
        """Get a facade around ``logging.getLogger(name)``.

        Args:
            name: Backend logger name, usually ``__name__``

        Returns:
            Log bound to this broadcaster
        """
        return Log(logging.getLogger(name), self)

    def subscribe(self, listener: Any) -> None:
        """Subscribe a callable taking the logged message."""
        self.message_logged.subscribe(listener)

    def unsubscribe(self, listener: Any) -> None:
        """Remove a previously subscribed callable."""
        self.message_logged.unsubscribe(listener)


class Log:
    """Leveled logger that also broadcasts every emitted message."""

    def __init__(self, logger: logging.Logger, broadcaster: LogBroadcaster):
        """Initialize log facade.

        Args:
            logger: Backend logger
            broadcaster: Broadcaster whose subscribers receive each message
        """
        self._logger = logger
        self._broadcaster = broadcaster

    @property
    def name(self) -> str:
        """Name of the backend logger."""
        return self._logger.name

    def _emit(self, level: int, message: str, exception: Optional[BaseException]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        # Observers get the plain message; the traceback only goes to the backend
        self._logger.log(level, message, exc_info=exception)
        self._broadcaster.message_logged.fire(message)

    def debug(self, message: str, exception: Optional[BaseException] = None) -> None:
        self._emit(logging.DEBUG, message, exception)

    def debug_format(self, template: str, *args: Any) -> None:
        self.debug(template.format(*args))

    def info(self, message: str, exception: Optional[BaseException] = None) -> None:
        self._emit(logging.INFO, message, exception)

    def info_format(self, template: str, *args: Any) -> None:
        self.info(template.format(*args))

    def warning(self, message: str, exception: Optional[BaseException] = None) -> None:
        self._emit(logging.WARNING, message, exception)

    def warning_format(self, template: str, *args: Any) -> None:
        self.warning(template.format(*args))

    def error(self, message: str, exception: Optional[BaseException] = None) -> None:
        self._emit(logging.ERROR, message, exception)

    def error_format(self, template: str, *args: Any) -> None:
        self.error(template.format(*args))


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure the root logger.

    Handlers installed by an earlier call are replaced, so calling this
    again only changes the level and destination.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to append log lines to
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
        _installed_handlers.append(handler)
