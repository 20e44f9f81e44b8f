import sys
from typing import Iterable, List, Optional

from .request_descriptor import RequestDescriptor

COMMENT_PREFIX = "#"


def parse_batch(text: str) -> List[str]:
    urls = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        urls.append(line)
    return urls


def load_batch_file(path: str) -> List[str]:
    if path == "-":
        return parse_batch(sys.stdin.read())
    with open(path, "r", encoding="utf-8") as f:
        return parse_batch(f.read())


def descriptors_from_urls(
        urls: Iterable[str], template: Optional[RequestDescriptor] = None
) -> List[RequestDescriptor]:
    """One descriptor per URL, each copying everything but the URL from the template."""
    if template is None:
        return [RequestDescriptor(url) for url in urls]
    return [template.with_url(url) for url in urls]
