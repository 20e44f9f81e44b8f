import dataclasses
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from .bcurl_errors import InvalidInputError

SUPPORTED_SCHEMES = ("http", "https")

_TOKEN_CHARS = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    PATCH = "PATCH"

    def __str__(self):
        return self.value

    @staticmethod
    def parse(method: Union[str, "HttpMethod"]) -> "HttpMethod":
        if isinstance(method, HttpMethod):
            return method
        try:
            return HttpMethod(str(method).strip().upper())
        except ValueError:
            raise InvalidInputError(f"Unknown HTTP method: {method}") from None


HeaderList = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Immutable description of one HTTP request.
    A timeout of None means the executing client's default timeout applies.
    Headers keep insertion order and may repeat a name.
    """
    url: str
    method: HttpMethod = HttpMethod.GET
    headers: HeaderList = ()
    body: Optional[bytes] = None
    follow_redirects: bool = True
    timeout: Optional[float] = None
    compression_enabled: bool = True

    def __post_init__(self):
        object.__setattr__(self, "method", HttpMethod.parse(self.method))
        object.__setattr__(self, "headers", _normalize_headers(self.headers))
        if isinstance(self.body, str):
            object.__setattr__(self, "body", self.body.encode("utf-8"))

    def with_url(self, url: str) -> "RequestDescriptor":
        return dataclasses.replace(self, url=url)

    def with_method(self, method: Union[str, HttpMethod]) -> "RequestDescriptor":
        return dataclasses.replace(self, method=HttpMethod.parse(method))

    def with_header(self, name: str, value: str) -> "RequestDescriptor":
        return dataclasses.replace(self, headers=self.headers + ((name, value),))

    def with_body(self, body: Union[str, bytes, None]) -> "RequestDescriptor":
        return dataclasses.replace(self, body=body)

    def with_timeout(self, timeout: Optional[float]) -> "RequestDescriptor":
        return dataclasses.replace(self, timeout=timeout)

    def with_follow_redirects(self, follow: bool) -> "RequestDescriptor":
        return dataclasses.replace(self, follow_redirects=follow)

    def with_compression(self, enabled: bool) -> "RequestDescriptor":
        return dataclasses.replace(self, compression_enabled=enabled)

    def header_values(self, name: str) -> List[str]:
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]

    def validate(self):
        if not self.url or not self.url.strip():
            raise InvalidInputError("URL cannot be empty", self.url)
        try:
            parts = urlsplit(self.url)
            parts.port  # pylint: disable=pointless-statement
        except ValueError as e:
            raise InvalidInputError(f"Invalid URL: {self.url} ({e})", self.url) from e
        if not parts.scheme:
            raise InvalidInputError(f"Invalid URL: {self.url} (no scheme supplied)", self.url)
        if parts.scheme.lower() not in SUPPORTED_SCHEMES:
            raise InvalidInputError(f"Protocol \"{parts.scheme}\" not supported", self.url)
        if not parts.hostname:
            raise InvalidInputError(f"Invalid URL: {self.url} (no host)", self.url)
        for name, value in self.headers:
            if not _TOKEN_CHARS.match(name):
                raise InvalidInputError(f"Invalid header name: {name!r}", self.url)
            if "\r" in value or "\n" in value:
                raise InvalidInputError(f"Invalid header value for {name}: {value!r}", self.url)
        if self.timeout is not None and self.timeout <= 0:
            raise InvalidInputError(f"Timeout must be positive, got {self.timeout}", self.url)


def _normalize_headers(headers) -> HeaderList:
    if headers is None:
        return ()
    if isinstance(headers, dict):
        headers = headers.items()
    normalized = []
    for pair in headers:
        try:
            name, value = pair
        except (TypeError, ValueError):
            raise InvalidInputError(f"Header must be a (name, value) pair, got: {pair!r}") from None
        normalized.append((str(name), str(value)))
    return tuple(normalized)


def parse_header(header: str) -> Tuple[str, str]:
    """Parses a header given as 'Key: Value'."""
    name, sep, value = header.partition(":")
    if not sep or not name.strip():
        raise InvalidInputError(f"Header must be in format 'Key: Value', got: {header}")
    return name.strip(), value.strip()


def parse_headers(headers: Iterable[str]) -> HeaderList:
    return tuple(parse_header(header) for header in headers)
