import socket
from enum import Enum
from typing import Optional

import requests
import urllib3.exceptions


class ErrorKind(str, Enum):
    TRANSPORT = "Transport"
    TIMEOUT = "Timeout"
    TOO_MANY_REDIRECTS = "TooManyRedirects"
    INVALID_INPUT = "InvalidInput"
    INTERRUPTED = "Interrupted"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


# curl exit codes for the matching failure class
_EXIT_CODES = {
    ErrorKind.TRANSPORT: 7,
    ErrorKind.TIMEOUT: 28,
    ErrorKind.TOO_MANY_REDIRECTS: 47,
    ErrorKind.INVALID_INPUT: 3,
    ErrorKind.INTERRUPTED: 130,
}


class BcurlError(Exception):
    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, url: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.cause = cause

    @property
    def exit_code(self) -> int:
        return self.kind.exit_code

    def __str__(self):
        return self.message


class TransportError(BcurlError):
    kind = ErrorKind.TRANSPORT


class RequestTimeoutError(BcurlError):
    kind = ErrorKind.TIMEOUT


class TooManyRedirectsError(BcurlError):
    kind = ErrorKind.TOO_MANY_REDIRECTS

    def __init__(self, message: str, url: Optional[str] = None, redirects_followed: int = 0):
        super().__init__(message, url)
        self.redirects_followed = redirects_followed


class InvalidInputError(BcurlError):
    kind = ErrorKind.INVALID_INPUT


class RunInterruptedError(BcurlError):
    kind = ErrorKind.INTERRUPTED


_TIMEOUT_EXCEPTIONS = (
    requests.exceptions.Timeout,
    urllib3.exceptions.TimeoutError,
    socket.timeout,
    TimeoutError,
)

_INVALID_INPUT_EXCEPTIONS = (
    requests.exceptions.URLRequired,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    urllib3.exceptions.LocationParseError,
)


def classify_exception(exc: BaseException, url: Optional[str] = None) -> BcurlError:
    """Maps an exception raised by the transport stack onto the error taxonomy."""
    if isinstance(exc, BcurlError):
        return exc
    if isinstance(exc, urllib3.exceptions.NewConnectionError):
        return TransportError(f"Failed to connect: {exc}", url, exc)
    if isinstance(exc, _TIMEOUT_EXCEPTIONS) or _caused_by_timeout(exc):
        return RequestTimeoutError(f"Operation timed out: {exc}", url, exc)
    if isinstance(exc, _INVALID_INPUT_EXCEPTIONS):
        return InvalidInputError(f"Invalid request: {exc}", url, exc)
    if isinstance(exc, requests.exceptions.SSLError):
        return TransportError(f"TLS handshake failed: {exc}", url, exc)
    if isinstance(exc, requests.exceptions.ConnectionError):
        return TransportError(f"Failed to connect: {exc}", url, exc)
    return TransportError(f"{type(exc).__name__}: {exc}", url, exc)


def _caused_by_timeout(exc: BaseException) -> bool:
    # requests wraps urllib3 MaxRetryError(reason=ConnectTimeoutError) as ConnectionError
    for arg in getattr(exc, "args", ()):
        reason = getattr(arg, "reason", arg)
        # NewConnectionError subclasses ConnectTimeoutError but means refused/unreachable
        if isinstance(reason, urllib3.exceptions.NewConnectionError):
            return False
        if isinstance(reason, _TIMEOUT_EXCEPTIONS):
            return True
    return False
