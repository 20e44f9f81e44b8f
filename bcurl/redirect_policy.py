from dataclasses import dataclass

from .request_descriptor import HttpMethod

DEFAULT_MAX_REDIRECTS = 10

REDIRECT_STATUSES = (301, 302, 303, 307, 308)

# headers that describe a request body and go away with it
BODY_HEADERS = ("content-type", "content-length", "transfer-encoding", "content-encoding")


@dataclass(frozen=True)
class RedirectPolicy:
    """
    How server-directed location changes are followed.

    max_redirects: number of redirects followed before giving up
    see_other_to_get: 303 turns every method except HEAD into GET
    post_to_get_on_moved: 301 and 302 turn POST into GET, like curl and browsers do
    307 and 308 always keep the method and the body.
    """
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    see_other_to_get: bool = True
    post_to_get_on_moved: bool = True

    def __post_init__(self):
        if self.max_redirects < 0:
            raise ValueError(f"max_redirects must be >= 0, got {self.max_redirects}")

    @staticmethod
    def is_redirect(status: int) -> bool:
        return status in REDIRECT_STATUSES

    def rebuild_method(self, status: int, method: HttpMethod) -> HttpMethod:
        if status == 303 and self.see_other_to_get and method != HttpMethod.HEAD:
            return HttpMethod.GET
        if status in (301, 302) and self.post_to_get_on_moved and method == HttpMethod.POST:
            return HttpMethod.GET
        return method
