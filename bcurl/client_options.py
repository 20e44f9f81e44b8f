from typing import Optional

from .bcurl_errors import InvalidInputError
from .output_logger import OutputLogger, LogLevel
from .redirect_policy import RedirectPolicy
from .version import __version__

DEFAULT_TIMEOUT = 30
DEFAULT_POOL_CONNECTIONS = 10
DEFAULT_POOL_MAXSIZE = 10
DEFAULT_USER_AGENT = f"bcurl/{__version__}"


class ClientOptions:
    """
    An object of properties for configuring an HttpClient
    All time related options are in seconds
    """

    def __init__(
            self,
            timeout: float = DEFAULT_TIMEOUT,
            redirect_policy: Optional[RedirectPolicy] = None,
            verify: bool = True,
            user_agent: str = DEFAULT_USER_AGENT,
            # number of per-host pools kept, and connections kept per pool
            pool_connections: int = DEFAULT_POOL_CONNECTIONS,
            pool_maxsize: int = DEFAULT_POOL_MAXSIZE,
            # wait for a free pooled connection instead of opening an extra one
            pool_block: bool = False,
            output_logger_level: Optional[LogLevel] = LogLevel.WARNING,
            custom_logger: Optional[OutputLogger] = None,
    ):
        if timeout is None or timeout <= 0:
            raise InvalidInputError(f"ClientOptions.timeout must be positive, got {timeout}")
        if pool_connections < 1 or pool_maxsize < 1:
            raise InvalidInputError("ClientOptions pool sizes must be at least 1")
        self.timeout = timeout
        self.redirect_policy = redirect_policy or RedirectPolicy()
        self.verify = verify
        self.user_agent = user_agent
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self.pool_block = pool_block
        self.output_logger_level = output_logger_level
        self.custom_logger = custom_logger

    def get_logging_copy(self):
        return {
            "timeout": self.timeout,
            "max_redirects": self.redirect_policy.max_redirects,
            "verify": self.verify,
            "user_agent": self.user_agent,
            "pool_connections": self.pool_connections,
            "pool_maxsize": self.pool_maxsize,
            "pool_block": self.pool_block,
        }
