from dataclasses import dataclass
from typing import Optional

from .bcurl_errors import BcurlError, ErrorKind
from .response import Response


@dataclass
class RequestResult:
    response: Optional[Response] = None
    error: Optional[BcurlError] = None

    def __post_init__(self):
        if (self.response is None) == (self.error is None):
            raise ValueError("RequestResult needs exactly one of response or error")

    @staticmethod
    def success(response: Response) -> "RequestResult":
        return RequestResult(response=response)

    @staticmethod
    def failure(error: BcurlError) -> "RequestResult":
        return RequestResult(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status if self.response is not None else None

    def unwrap(self) -> Response:
        if self.error is not None:
            raise self.error
        return self.response
