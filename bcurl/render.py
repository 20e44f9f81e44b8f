import os
from typing import BinaryIO, Optional, TextIO

from .request_descriptor import RequestDescriptor
from .request_result import RequestResult
from .response import Response

HTTP_ERROR_EXIT_CODE = 22
WRITE_ERROR_EXIT_CODE = 23


def format_headers(response: Response) -> str:
    lines = [response.status_line()]
    lines.extend(f"{name}: {value}" for name, value in response.headers)
    return "\n".join(lines) + "\n\n"


def output_path_for(path: str, index: int, total: int) -> str:
    """With several URLs each body gets its own file: out.html -> out.1.html."""
    if total <= 1:
        return path
    root, ext = os.path.splitext(path)
    return f"{root}.{index + 1}{ext}"


def result_exit_code(result: RequestResult) -> int:
    if result.error is not None:
        return result.error.exit_code
    return 0 if result.response.is_success() else HTTP_ERROR_EXIT_CODE


class ResponseRenderer:
    """Writes results the way curl does: bodies to stdout, diagnostics to stderr."""

    def __init__(
            self,
            stdout: BinaryIO,
            stderr: TextIO,
            include_headers: bool = False,
            head_only: bool = False,
            verbose: bool = False,
            silent: bool = False,
            output_path: Optional[str] = None,
    ):
        self._stdout = stdout
        self._stderr = stderr
        self._include_headers = include_headers
        self._head_only = head_only
        self._verbose = verbose
        self._silent = silent
        self._output_path = output_path

    def render(self, index: int, total: int, descriptor: RequestDescriptor, result: RequestResult) -> int:
        if self._verbose:
            self._render_request(descriptor)
        if result.error is not None:
            self.render_error(result.error.exit_code, str(result.error))
            return result.error.exit_code

        response = result.response
        if self._verbose:
            self._render_response_headers(response)
        payload = b""
        if self._include_headers or self._head_only:
            payload = format_headers(response).encode("utf-8")
        if not self._head_only:
            payload += response.body

        if self._output_path is not None:
            path = output_path_for(self._output_path, index, total)
            try:
                with open(path, "wb") as f:
                    f.write(payload)
            except OSError as e:
                self.render_error(WRITE_ERROR_EXIT_CODE, f"Failed writing body to {path}: {e}")
                return WRITE_ERROR_EXIT_CODE
        else:
            self._stdout.write(payload)
            self._stdout.flush()
        return result_exit_code(result)

    def render_error(self, exit_code: int, message: str):
        if not self._silent:
            self._stderr.write(f"bcurl: ({exit_code}) {message}\n")
            self._stderr.flush()

    def _render_request(self, descriptor: RequestDescriptor):
        lines = [f"> {descriptor.method} {descriptor.url}"]
        lines.extend(f"> {name}: {value}" for name, value in descriptor.headers)
        lines.append(">")
        self._stderr.write("\n".join(lines) + "\n")

    def _render_response_headers(self, response: Response):
        lines = [f"< {response.status_line()}"]
        lines.extend(f"< {name}: {value}" for name, value in response.headers)
        lines.append("<")
        self._stderr.write("\n".join(lines) + "\n")
