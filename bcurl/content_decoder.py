import gzip
import zlib
from typing import List, Optional

import brotli

from .bcurl_errors import TransportError

SUPPORTED_ENCODINGS = ("gzip", "deflate", "br")
_ALIASES = {"x-gzip": "gzip"}


def accept_encoding_header() -> str:
    return ", ".join(SUPPORTED_ENCODINGS)


class ContentDecoder:
    """Decodes one complete response body for a single content-coding."""

    def __init__(self, encoding):
        self.encoding = _ALIASES.get(encoding, encoding)
        if self.encoding not in SUPPORTED_ENCODINGS:
            raise ValueError(f"Unsupported content-coding: {encoding}")

    def decode(self, data: bytes) -> bytes:
        if self.encoding == "gzip":
            return gzip.decompress(data)

        if self.encoding == "br":
            return brotli.decompress(data)

        # "deflate" is zlib-wrapped per RFC 9110, but some servers send a raw stream
        try:
            return zlib.decompress(data)
        except zlib.error:
            return zlib.decompress(data, -zlib.MAX_WBITS)


def parse_content_encoding(header_value: Optional[str]) -> List[str]:
    if not header_value:
        return []
    return [
        coding.strip().lower()
        for coding in header_value.split(",")
        if coding.strip() and coding.strip().lower() != "identity"
    ]


def decode_body(data: bytes, content_encoding: Optional[str], url: Optional[str] = None) -> bytes:
    """
    Undoes the codings listed in a Content-Encoding header, last applied first.
    Bodies with no coding or with any coding we don't understand come back unchanged.
    """
    codings = parse_content_encoding(content_encoding)
    if not data or not codings:
        return data
    if any(_ALIASES.get(coding, coding) not in SUPPORTED_ENCODINGS for coding in codings):
        return data

    for coding in reversed(codings):
        try:
            data = ContentDecoder(coding).decode(data)
        except (OSError, EOFError, zlib.error, brotli.error) as e:
            raise TransportError(f"Failed to decode {coding} response body: {e}", url, e) from e
    return data
