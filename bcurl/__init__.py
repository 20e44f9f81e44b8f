from .batch import descriptors_from_urls, load_batch_file, parse_batch
from .bcurl_errors import (
    BcurlError,
    ErrorKind,
    InvalidInputError,
    RequestTimeoutError,
    RunInterruptedError,
    TooManyRedirectsError,
    TransportError,
)
from .client_options import ClientOptions
from .content_decoder import ContentDecoder, decode_body
from .fan_out import ExecutionMode, FanOutOrchestrator
from .http_client import HttpClient
from .output_logger import LogLevel
from .output_logger import OutputLogger
from .redirect_policy import RedirectPolicy
from .request_descriptor import HttpMethod, RequestDescriptor, parse_header
from .request_result import RequestResult
from .response import Response
from .version import __version__

__all__ = [
    "BcurlError",
    "ClientOptions",
    "ContentDecoder",
    "ErrorKind",
    "ExecutionMode",
    "FanOutOrchestrator",
    "HttpClient",
    "HttpMethod",
    "InvalidInputError",
    "LogLevel",
    "OutputLogger",
    "RedirectPolicy",
    "RequestDescriptor",
    "RequestResult",
    "RequestTimeoutError",
    "Response",
    "RunInterruptedError",
    "TooManyRedirectsError",
    "TransportError",
    "__version__",
    "decode_body",
    "descriptors_from_urls",
    "load_batch_file",
    "parse_batch",
    "parse_header",
]
