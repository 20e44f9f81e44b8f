import threading
from typing import Callable, Iterable, Optional

from .error_boundary import _ErrorBoundary

# short joins so Ctrl-C reaches the waiting thread promptly
JOIN_POLL_INTERVAL = 0.1


def spawn_background_thread(name: str,
                            task: Callable[..., None],
                            args: tuple,
                            error_boundary: Optional[_ErrorBoundary] = None) -> Optional[threading.Thread]:
    try:
        thread = threading.Thread(target=task, args=args, name=f"bcurl::{name}")
        thread.daemon = True
        thread.start()
        return thread

    except Exception as e:
        if error_boundary is not None:
            error_boundary.log_exception("spawn_background_thread", e)
        return None


def join_threads(threads: Iterable[threading.Thread], on_interrupt: Optional[Callable[[], None]] = None):
    """
    Waits for every thread to finish. A KeyboardInterrupt while waiting calls
    on_interrupt and keeps waiting; without a callback it propagates.
    """
    for thread in threads:
        while thread.is_alive():
            try:
                thread.join(JOIN_POLL_INTERVAL)
            except KeyboardInterrupt:
                if on_interrupt is None:
                    raise
                on_interrupt()
