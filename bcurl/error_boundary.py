import threading
import traceback
from typing import Callable, Optional, TypeVar

from . import globals
from .bcurl_errors import BcurlError

T = TypeVar("T")


class _ErrorBoundary:
    """
    Keeps an unexpected exception in one task from escaping into its siblings.
    Errors from the bcurl taxonomy are caller errors and are re-raised as is.
    """
    _seen: set

    def __init__(self, is_silent=False):
        self._seen = set()
        self._lock = threading.Lock()
        self._is_silent = is_silent

    def capture(self, tag: str, task: Callable[[], T], recover: Callable[[Exception], T],
                extra: Optional[dict] = None) -> T:
        try:
            return task()
        except BcurlError as e:
            raise e
        except Exception as e:
            self.log_exception(tag, e, extra)
            return recover(e)

    def swallow(self, tag: str, task):
        def empty_recover(_e):
            return None

        self.capture(tag, task, empty_recover)

    def log_exception(
            self,
            tag: str,
            exception: Exception,
            extra: Optional[dict] = None,
            bypass_dedupe: bool = False,
            log_mode: Optional[str] = "warning",  # warning/debug/none based on error severity
    ):
        try:
            name = type(exception).__name__
            with self._lock:
                if not bypass_dedupe and name in self._seen:
                    log_mode = "debug" if log_mode != "none" else log_mode
                self._seen.add(name)

            if self._is_silent or log_mode == "none":
                return

            stack_trace = traceback.format_exc()
            if stack_trace is None or stack_trace == 'NoneType: None\n':
                stack_trace = str(exception)
            full_error_message = f"[{tag}]: {str(exception)} \n {stack_trace}"
            if extra:
                full_error_message += f"\n extra: {extra}"
            if log_mode == "warning":
                globals.logger.warning(full_error_message)
            elif log_mode == "debug":
                globals.logger.debug(full_error_message)
        except BaseException:
            # no-op, best effort
            pass
