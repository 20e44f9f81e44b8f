from http.cookiejar import DefaultCookiePolicy
from typing import NamedTuple
from urllib.parse import urlsplit

import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict
from urllib3 import HTTPHeaderDict

from . import globals
from .client_options import ClientOptions

_DEFAULT_PORTS = {"http": 80, "https": 443}


class PoolKey(NamedTuple):
    scheme: str
    host: str
    port: int


def pool_key(url: str) -> PoolKey:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    return PoolKey(scheme, (parts.hostname or "").lower(), parts.port or _DEFAULT_PORTS.get(scheme, 0))


class SessionPool:
    """
    Owns the persistent transport state of one client: a requests.Session whose
    adapter keeps a urllib3 connection pool per (scheme, host, port). Each pool is a
    thread-safe queue, so checkout and return are serialized per key only.
    """

    def __init__(self, options: ClientOptions):
        self._options = options
        self._closed = False
        self.session = self._build_session(options)

    @staticmethod
    def _build_session(options: ClientOptions) -> requests.Session:
        session = requests.Session()
        # redirects and the single reconnect are handled by the client
        adapter = HTTPAdapter(
            pool_connections=options.pool_connections,
            pool_maxsize=options.pool_maxsize,
            pool_block=options.pool_block,
            max_retries=0,
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.verify = options.verify
        if not options.verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        session.trust_env = False
        # no cookie jar: Set-Cookie from one response never rides along on the next request
        session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        session.headers = CaseInsensitiveDict({
            "User-Agent": options.user_agent,
            "Accept": "*/*",
        })
        return session

    @property
    def closed(self) -> bool:
        return self._closed

    def request(self, method: str, url: str, headers=None, data=None, **kwargs) -> requests.Response:
        """
        Prepares and sends one request. Session.request would merge the headers into a
        CaseInsensitiveDict and collapse repeated names, so the caller's HTTPHeaderDict
        is laid over the prepared defaults instead and reaches urllib3 field by field.
        """
        prepared = self.session.prepare_request(requests.Request(method, url, data=data))
        prepared.headers = _wire_headers(prepared.headers, headers or HTTPHeaderDict())
        return self.session.send(prepared, **kwargs)

    def should_strip_auth(self, old_url: str, new_url: str) -> bool:
        return self.session.should_strip_auth(old_url, new_url)

    def close(self):
        if self._closed:
            return
        self._closed = True
        globals.logger.log_process("Session Pool", "Releasing pooled connections")
        self.session.close()


def _wire_headers(defaults, headers: HTTPHeaderDict) -> HTTPHeaderDict:
    wire = HTTPHeaderDict()
    for name, value in defaults.items():
        if name not in headers:
            wire[name] = value
    for name, value in headers.items():
        wire.add(name, value)
    return wire
