import logging
import re
import sys
from enum import Enum
from typing import Optional, TextIO

STREAM_FORMAT = "bcurl: [%(levelname)s] [%(threadName)s] %(message)s"


class LogLevel(Enum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @staticmethod
    def parse(name: str) -> "LogLevel":
        return LogLevel[name.strip().upper()]


class OutputLogger:
    """
    Diagnostics for the client and orchestrator. Every message is sanitized before
    it reaches the underlying logger and a failure to log never reaches the caller.
    """

    def __init__(self, name):
        self._disabled = 'unittest' in sys.modules
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.WARNING)
        self._handler: Optional[logging.Handler] = None

    def attach_stream(self, stream: TextIO, fmt: str = STREAM_FORMAT):
        """Sends records to the given stream instead of the root logger's handlers."""
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        self._install_handler(handler)

    def discard_output(self):
        """Drops every record, including the ones logging.lastResort would print to stderr."""
        self._install_handler(logging.NullHandler())

    def _install_handler(self, handler: logging.Handler):
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
        self._handler = handler
        self._logger.addHandler(handler)
        self._logger.propagate = False

    def set_log_level(self, log_level: LogLevel):
        self._logger.setLevel(log_level.value)

    def is_enabled_for(self, log_level: LogLevel) -> bool:
        return not self._disabled and self._logger.isEnabledFor(log_level.value)

    def log_process(self, process: str, msg: str):
        self.debug(f"{process}: {msg}")

    def debug(self, msg, *args, **kwargs):
        self._emit(logging.DEBUG, msg, args, kwargs)

    def info(self, msg, *args, **kwargs):
        self._emit(logging.INFO, msg, args, kwargs)

    def warning(self, msg, *args, **kwargs):
        self._emit(logging.WARNING, msg, args, kwargs)

    def error(self, msg, *args, **kwargs):
        self._emit(logging.ERROR, msg, args, kwargs)

    def _emit(self, level: int, msg, args: tuple, kwargs: dict):
        try:
            if self._disabled or not self._logger.isEnabledFor(level):
                return
            sanitized_msg, sanitized_args, _ = self._sanitize_args(msg, *args, **kwargs)
            self._logger.log(level, sanitized_msg, *sanitized_args, exc_info=kwargs.get("exc_info"))
        except Exception:
            pass

    def _sanitize_args(self, msg, *args, **kwargs):
        sanitized_msg = sanitize(str(msg))
        sanitized_args = tuple(sanitize(str(arg)) for arg in args)
        sanitized_kwargs = {k: sanitize(str(v)) for k, v in kwargs.items()}
        return sanitized_msg, sanitized_args, sanitized_kwargs


# user:password@ in URLs and Authorization values in header dumps
_URL_CREDENTIALS = re.compile(r'(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/\s:@]+:[^/\s@]+@')
_AUTHORIZATION = re.compile(
    r'(?P<name>authorization[\'"]?\s*[:=]\s*[\'"]?)(?P<value>[^\r\n,}\'"]+)', re.IGNORECASE)


def sanitize(string: str) -> str:
    string = _URL_CREDENTIALS.sub(r'\g<scheme>****:****@', string)
    return _AUTHORIZATION.sub(r'\g<name>****', string)
