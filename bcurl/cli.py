import argparse
import sys
from typing import BinaryIO, List, Optional, TextIO

from . import globals
from .batch import descriptors_from_urls, load_batch_file
from .bcurl_errors import ErrorKind, InvalidInputError
from .client_options import DEFAULT_TIMEOUT, ClientOptions
from .fan_out import ExecutionMode, FanOutOrchestrator
from .output_logger import LogLevel
from .redirect_policy import DEFAULT_MAX_REDIRECTS, RedirectPolicy
from .render import ResponseRenderer
from .request_descriptor import HttpMethod, RequestDescriptor, parse_headers
from .version import __version__

READ_ERROR_EXIT_CODE = 26


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bcurl", description="A small curl-like HTTP client")
    parser.add_argument("urls", nargs="*", metavar="URL", help="URL(s) to request")
    parser.add_argument("-X", "--request", dest="method", default=None,
                        help="HTTP method to use (GET, POST, PUT, DELETE, HEAD, PATCH)")
    parser.add_argument("-d", "--data", default=None,
                        help="Data to send in the request body, @file to read it from a file")
    parser.add_argument("-H", "--header", dest="headers", action="append", default=[],
                        help="Header to include as 'Key: Value' (repeatable)")
    parser.add_argument("-L", "--location", dest="follow_redirects", action="store_const", const=True,
                        help="Follow redirects (default)")
    parser.add_argument("--no-location", dest="follow_redirects", action="store_const", const=False,
                        help="Do not follow redirects")
    parser.add_argument("--max-redirs", type=int, default=DEFAULT_MAX_REDIRECTS,
                        help="Maximum number of redirects to follow")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("-o", "--output", default=None, help="Write the body to a file")
    parser.add_argument("-i", "--include", dest="include_headers", action="store_true",
                        help="Include response headers in the output")
    parser.add_argument("-m", "--max-time", type=float, default=DEFAULT_TIMEOUT,
                        help="Maximum time in seconds for each request, redirects included")
    parser.add_argument("-s", "--silent", action="store_true", help="Silent mode")
    parser.add_argument("-I", "--head", dest="head_only", action="store_true",
                        help="Show only the response headers")
    parser.add_argument("--compressed", dest="compression", action="store_const", const=True,
                        help="Request a compressed response and decode it (default)")
    parser.add_argument("--no-compressed", dest="compression", action="store_const", const=False,
                        help="Do not request or decode compressed responses")
    parser.add_argument("-k", "--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("-Z", "--parallel", action="store_true", help="Perform transfers in parallel")
    parser.add_argument("--parallel-max", type=int, default=None,
                        help="Maximum number of concurrent transfers in parallel mode")
    parser.add_argument("--batch", default=None, metavar="FILE",
                        help="Read URLs from FILE, one per line ('-' for stdin)")
    parser.add_argument("--log-level", default=None, choices=[level.name.lower() for level in LogLevel],
                        help="Diagnostic log level")
    parser.add_argument("-V", "--version", action="version", version=f"bcurl {__version__}")
    parser.set_defaults(follow_redirects=True, compression=True)
    return parser


def read_data_argument(data: Optional[str]) -> Optional[bytes]:
    if data is None:
        return None
    if data.startswith("@"):
        path = data[1:]
        if path == "-":
            return sys.stdin.buffer.read()
        with open(path, "rb") as f:
            return f.read()
    return data.encode("utf-8")


def build_template(args: argparse.Namespace) -> RequestDescriptor:
    body = read_data_argument(args.data)
    if args.head_only:
        method = HttpMethod.HEAD
    elif args.method is not None:
        method = HttpMethod.parse(args.method)
    else:
        method = HttpMethod.POST if body is not None else HttpMethod.GET
    return RequestDescriptor(
        url="",
        method=method,
        headers=parse_headers(args.headers),
        body=body,
        follow_redirects=args.follow_redirects,
        timeout=args.max_time,
        compression_enabled=args.compression,
    )


def build_options(args: argparse.Namespace) -> ClientOptions:
    if args.max_redirs < 0:
        raise InvalidInputError(f"--max-redirs must be >= 0, got {args.max_redirs}")
    return ClientOptions(
        timeout=args.max_time,
        redirect_policy=RedirectPolicy(max_redirects=args.max_redirs),
        verify=not args.insecure,
        output_logger_level=LogLevel.parse(args.log_level) if args.log_level else LogLevel.WARNING,
    )


def main(argv: Optional[List[str]] = None, stdout: Optional[BinaryIO] = None,
         stderr: Optional[TextIO] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    stdout = stdout if stdout is not None else sys.stdout.buffer
    stderr = stderr if stderr is not None else sys.stderr
    renderer = ResponseRenderer(
        stdout,
        stderr,
        include_headers=args.include_headers,
        head_only=args.head_only,
        verbose=args.verbose,
        silent=args.silent,
        output_path=args.output,
    )

    try:
        urls = list(args.urls)
        if args.batch is not None:
            urls.extend(load_batch_file(args.batch))
        template = build_template(args)
        options = build_options(args)
    except InvalidInputError as e:
        renderer.render_error(e.exit_code, str(e))
        return e.exit_code
    except OSError as e:
        renderer.render_error(READ_ERROR_EXIT_CODE, f"Failed to read input: {e}")
        return READ_ERROR_EXIT_CODE

    # diagnostics only with --log-level; stderr otherwise carries the rendered errors alone
    if args.log_level:
        globals.logger.attach_stream(stderr)
    else:
        globals.logger.discard_output()
    if len(urls) == 0:
        parser.error("no URL specified")

    descriptors = descriptors_from_urls(urls, template)
    mode = ExecutionMode.PARALLEL if args.parallel else ExecutionMode.SEQUENTIAL
    try:
        with FanOutOrchestrator(options=options) as orchestrator:
            results = orchestrator.run(descriptors, mode, args.parallel_max)
    except InvalidInputError as e:
        renderer.render_error(e.exit_code, str(e))
        return e.exit_code

    exit_code = 0
    for index, (descriptor, result) in enumerate(zip(descriptors, results)):
        code = renderer.render(index, len(descriptors), descriptor, result)
        if exit_code == 0:
            exit_code = code
    if any(result.kind == ErrorKind.INTERRUPTED for result in results):
        return ErrorKind.INTERRUPTED.exit_code
    return exit_code
