from dataclasses import dataclass
from typing import List, Optional, Tuple

from requests.utils import get_encoding_from_headers

HeaderList = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class Response:
    status: int
    headers: HeaderList
    body: bytes
    final_url: str
    reason: str = ""
    http_version: str = "HTTP/1.1"
    redirect_count: int = 0

    def __post_init__(self):
        if not 100 <= self.status <= 599:
            raise ValueError(f"HTTP status out of range: {self.status}")
        object.__setattr__(self, "headers", tuple((str(k), str(v)) for k, v in self.headers))

    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def get_header(self, name: str) -> Optional[str]:
        values = self.get_all(name)
        return values[0] if values else None

    def get_all(self, name: str) -> List[str]:
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]

    def text(self, encoding: Optional[str] = None) -> str:
        if encoding is None:
            content_type = self.get_header("Content-Type")
            encoding = get_encoding_from_headers({"content-type": content_type}) if content_type else None
            # requests defaults text/* to ISO-8859-1; bodies here are treated as UTF-8 unless declared
            if encoding == "ISO-8859-1" and "charset" not in (content_type or "").lower():
                encoding = None
        try:
            return self.body.decode(encoding or "utf-8", errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

    def status_line(self) -> str:
        line = f"{self.http_version} {self.status}"
        return f"{line} {self.reason}" if self.reason else line
