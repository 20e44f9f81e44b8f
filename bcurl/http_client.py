import threading
import time
from typing import Optional, Union
from urllib.parse import urljoin, urlsplit

import requests
import urllib3.exceptions
from requests.utils import requote_uri
from urllib3 import HTTPHeaderDict

from . import globals
from .bcurl_errors import (
    BcurlError,
    InvalidInputError,
    RequestTimeoutError,
    TooManyRedirectsError,
    TransportError,
    classify_exception,
)
from .client_options import ClientOptions
from .content_decoder import accept_encoding_header, decode_body
from .error_boundary import _ErrorBoundary
from .redirect_policy import BODY_HEADERS, RedirectPolicy
from .request_descriptor import SUPPORTED_SCHEMES, HttpMethod, RequestDescriptor
from .request_result import RequestResult
from .response import Response
from .session_pool import SessionPool, pool_key
from .thread_util import spawn_background_thread

READ_CHUNK_SIZE = 64 * 1024

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1"}


class _Exchange:
    """State shared by the caller waiting on a deadline and the thread doing the I/O."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Optional[requests.Response] = None
        self.done = threading.Event()
        self.abandoned = False
        self.result: Optional[RequestResult] = None

    def track(self, response: requests.Response):
        with self._lock:
            if not self.abandoned:
                self._active = response
                return
        response.close()
        raise RequestTimeoutError("Exchange abandoned after deadline", response.url)

    def untrack(self):
        with self._lock:
            self._active = None

    def complete(self, result: RequestResult):
        with self._lock:
            self.result = result
        self.done.set()

    def abandon(self) -> bool:
        with self._lock:
            if self.result is not None:
                return False
            self.abandoned = True
            active, self._active = self._active, None
        if active is not None:
            # the socket may be mid-read; closing keeps it from going back to the pool
            try:
                active.close()
            except Exception as e:
                globals.logger.debug(f"Failed to close abandoned response: {e}")
        return True


class HttpClient:
    """
    Executes request descriptors over one pool of persistent connections.
    Safe to share between threads. Non-2xx statuses are returned as responses;
    only transport level failures come back as errors.
    """

    def __init__(
            self,
            options: Optional[ClientOptions] = None,
            error_boundary: Optional[_ErrorBoundary] = None,
    ):
        self._options = options or ClientOptions()
        globals.init_logger(self._options)
        self._error_boundary = error_boundary or _ErrorBoundary()
        self._pool = SessionPool(self._options)
        self._request_count = 0
        self._count_lock = threading.Lock()
        globals.logger.log_process("HTTP Client", f"Created with options {self._options.get_logging_copy()}")

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def request_count(self) -> int:
        with self._count_lock:
            return self._request_count

    def execute(self, descriptor: RequestDescriptor) -> RequestResult:
        if self._pool.closed:
            error = InvalidInputError("Client is closed", descriptor.url)
            self._handle_response_error(descriptor, error)
            return RequestResult.failure(error)
        try:
            descriptor.validate()
        except InvalidInputError as e:
            self._handle_response_error(descriptor, e)
            return RequestResult.failure(e)

        with self._count_lock:
            self._request_count += 1

        timeout = descriptor.timeout if descriptor.timeout is not None else self._options.timeout
        result = self._run_request_with_strict_timeout(descriptor, timeout)
        if result.error is not None:
            self._handle_response_error(descriptor, result.error)
        return result

    def get(self, url: str) -> RequestResult:
        return self.execute(RequestDescriptor(url))

    def head(self, url: str) -> RequestResult:
        return self.execute(RequestDescriptor(url, method=HttpMethod.HEAD))

    def delete(self, url: str) -> RequestResult:
        return self.execute(RequestDescriptor(url, method=HttpMethod.DELETE))

    def post(self, url: str, data: Union[str, bytes, None] = None) -> RequestResult:
        return self.execute(RequestDescriptor(url, method=HttpMethod.POST, body=data))

    def put(self, url: str, data: Union[str, bytes, None] = None) -> RequestResult:
        return self.execute(RequestDescriptor(url, method=HttpMethod.PUT, body=data))

    def patch(self, url: str, data: Union[str, bytes, None] = None) -> RequestResult:
        return self.execute(RequestDescriptor(url, method=HttpMethod.PATCH, body=data))

    def close(self):
        self._error_boundary.swallow("close", self._pool.close)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def _run_request_with_strict_timeout(self, descriptor: RequestDescriptor, timeout: float) -> RequestResult:
        deadline = time.monotonic() + timeout
        exchange = _Exchange()

        def request_task():
            exchange.complete(self._perform(descriptor, deadline, exchange))

        thread = spawn_background_thread("request", request_task, (), self._error_boundary)
        if thread is None:
            return self._perform(descriptor, deadline, exchange)

        if exchange.done.wait(timeout):
            return exchange.result
        if exchange.abandon():
            return RequestResult.failure(RequestTimeoutError(
                f"Operation timed out after {round(timeout * 1000)} milliseconds", descriptor.url))
        return exchange.result

    def _perform(self, descriptor: RequestDescriptor, deadline: float, exchange: _Exchange) -> RequestResult:
        try:
            return RequestResult.success(self._follow(descriptor, deadline, exchange))
        except Exception as e:
            return RequestResult.failure(classify_exception(e, descriptor.url))

    def _follow(self, descriptor: RequestDescriptor, deadline: float, exchange: _Exchange) -> Response:
        policy = self._options.redirect_policy
        method = descriptor.method
        url = descriptor.url
        body = descriptor.body
        headers = self._prepare_headers(descriptor)
        redirects = 0

        while True:
            response = self._send(method, url, headers, body, deadline, exchange)
            try:
                location = self._redirect_target(response) if descriptor.follow_redirects else None
                if location is None:
                    raw_body = self._read_body(response, deadline, exchange)
                    return self._build_response(descriptor, response, raw_body, redirects)
                if redirects >= policy.max_redirects:
                    raise TooManyRedirectsError(
                        f"Maximum ({policy.max_redirects}) redirects followed", descriptor.url, redirects)
                # drained so the connection can serve the next hop
                self._read_body(response, deadline, exchange)
                status = response.status_code
            finally:
                exchange.untrack()
                response.close()

            next_url = requote_uri(urljoin(url, location))
            if urlsplit(next_url).scheme.lower() not in SUPPORTED_SCHEMES:
                raise TransportError(f"Redirect to unsupported protocol: {next_url}", descriptor.url)

            next_method = policy.rebuild_method(status, method)
            if next_method != method:
                body = None
                for name in BODY_HEADERS:
                    headers.pop(name, None)
            if self._pool.should_strip_auth(url, next_url):
                headers.pop("Authorization", None)

            globals.logger.log_process(
                "Redirect", f"{status} {method} {url} -> {next_method} {next_url} ({redirects + 1}/{policy.max_redirects})")
            method, url = next_method, next_url
            redirects += 1

    def _send(self, method, url, headers, body, deadline, exchange) -> requests.Response:
        try:
            return self._send_once(method, url, headers, body, deadline, exchange)
        except requests.exceptions.ConnectionError as e:
            if not _is_stale_connection(e):
                raise
            globals.logger.log_process(
                "HTTP Client", f"Connection to {pool_key(url)} was closed by the server, reconnecting")
            return self._send_once(method, url, headers, body, deadline, exchange)

    def _send_once(self, method, url, headers, body, deadline, exchange) -> requests.Response:
        remaining = self._remaining(deadline, url, exchange)
        globals.logger.log_process("HTTP Client", f"{method} {url}")
        response = self._pool.request(
            method.value,
            url,
            headers=headers,
            data=body,
            timeout=(remaining, remaining),
            stream=True,
            allow_redirects=False,
        )
        exchange.track(response)
        return response

    def _read_body(self, response: requests.Response, deadline: float, exchange: _Exchange) -> bytes:
        chunks = []
        while True:
            self._remaining(deadline, response.url, exchange)
            chunk = response.raw.read(READ_CHUNK_SIZE, decode_content=False)
            if not chunk:
                break
            chunks.append(chunk)
        # fully drained, so the connection goes back to its pool before close() runs
        response.raw.release_conn()
        return b"".join(chunks)

    def _redirect_target(self, response: requests.Response) -> Optional[str]:
        if not RedirectPolicy.is_redirect(response.status_code):
            return None
        return self._pool.session.get_redirect_target(response)

    def _build_response(
            self,
            descriptor: RequestDescriptor,
            response: requests.Response,
            raw_body: bytes,
            redirects: int,
    ) -> Response:
        body = raw_body
        if descriptor.compression_enabled:
            body = decode_body(raw_body, response.headers.get("Content-Encoding"), response.url)
        try:
            return Response(
                status=response.status_code,
                headers=tuple(_iter_headers(response.raw.headers)),
                body=body,
                final_url=response.url,
                reason=response.reason or "",
                http_version=_HTTP_VERSIONS.get(getattr(response.raw, "version", 11), "HTTP/1.1"),
                redirect_count=redirects,
            )
        except ValueError as e:
            raise TransportError(f"Malformed response from {response.url}: {e}", descriptor.url, e) from e

    def _prepare_headers(self, descriptor: RequestDescriptor) -> HTTPHeaderDict:
        # repeated names stay separate fields on the wire
        headers = HTTPHeaderDict()
        for name, value in descriptor.headers:
            headers.add(name, value)
        if descriptor.compression_enabled and "Accept-Encoding" not in headers:
            headers["Accept-Encoding"] = accept_encoding_header()
        return headers

    @staticmethod
    def _remaining(deadline: float, url: str, exchange: _Exchange) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0 or exchange.abandoned:
            raise RequestTimeoutError("Operation timed out", url)
        return remaining

    def _handle_response_error(self, descriptor: RequestDescriptor, error: BcurlError):
        globals.logger.warning(
            f"Request to {descriptor.url} failed with {error.kind.value} error: {error}")


def _is_stale_connection(error: requests.exceptions.ConnectionError) -> bool:
    # the server dropped a kept-alive connection before sending a status line
    for arg in error.args:
        reason = getattr(arg, "reason", arg)
        if isinstance(reason, urllib3.exceptions.ProtocolError):
            return True
    return False


def _iter_headers(raw_headers):
    if hasattr(raw_headers, "iteritems"):
        return raw_headers.iteritems()
    return raw_headers.items()
