import queue
import threading
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

from . import globals
from .batch import descriptors_from_urls, parse_batch
from .bcurl_errors import BcurlError, InvalidInputError, RunInterruptedError, TransportError
from .client_options import ClientOptions
from .error_boundary import _ErrorBoundary
from .http_client import HttpClient
from .request_descriptor import RequestDescriptor
from .request_result import RequestResult
from .thread_util import join_threads, spawn_background_thread


class ExecutionMode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class FanOutOrchestrator:
    """
    Runs many descriptors through one shared HttpClient and returns one result per
    descriptor, in input order. Each worker writes only the slot of the descriptor it
    took from the queue, so completion order never matters.
    """

    def __init__(
            self,
            client: Optional[HttpClient] = None,
            options: Optional[ClientOptions] = None,
            error_boundary: Optional[_ErrorBoundary] = None,
    ):
        self._error_boundary = error_boundary or _ErrorBoundary()
        self._owns_client = client is None
        self._client = client or HttpClient(options, self._error_boundary)
        self._stop_event = threading.Event()

    @property
    def client(self) -> HttpClient:
        return self._client

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self):
        """Stops handing out descriptors. Requests already in flight run to completion."""
        self._stop_event.set()

    def run(
            self,
            descriptors: Iterable[RequestDescriptor],
            mode: Union[ExecutionMode, str] = ExecutionMode.SEQUENTIAL,
            max_concurrency: Optional[int] = None,
    ) -> List[RequestResult]:
        descriptors = list(descriptors)
        mode = ExecutionMode(mode)
        if max_concurrency is not None and max_concurrency < 1:
            raise InvalidInputError(f"max_concurrency must be at least 1, got {max_concurrency}")
        if len(descriptors) == 0:
            return []

        results: List[Optional[RequestResult]] = [None] * len(descriptors)
        work: "queue.Queue" = queue.Queue()
        for index, descriptor in enumerate(descriptors):
            work.put((index, descriptor))

        worker_count = self._worker_count(mode, max_concurrency, len(descriptors))
        globals.logger.log_process(
            "Fan Out", f"Running {len(descriptors)} requests in {mode.value} mode with {worker_count} workers")

        workers = []
        for i in range(worker_count):
            worker = spawn_background_thread(
                f"fan_out_worker_{i}", self._process_queue, (work, results), self._error_boundary)
            if worker is not None:
                workers.append(worker)
        if len(workers) == 0:
            self._process_queue(work, results)

        self._wait_for(workers)
        return self._collect(descriptors, results)

    def run_batch(
            self,
            urls: Union[str, Sequence[str]],
            template: Optional[RequestDescriptor] = None,
            mode: Union[ExecutionMode, str] = ExecutionMode.SEQUENTIAL,
            max_concurrency: Optional[int] = None,
    ) -> List[RequestResult]:
        if isinstance(urls, str):
            urls = parse_batch(urls)
        return self.run(descriptors_from_urls(urls, template), mode, max_concurrency)

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    @staticmethod
    def _worker_count(mode: ExecutionMode, max_concurrency: Optional[int], descriptor_count: int) -> int:
        if mode == ExecutionMode.SEQUENTIAL:
            return 1
        return min(max_concurrency or descriptor_count, descriptor_count)

    def _process_queue(self, work: "queue.Queue", results: List[Optional[RequestResult]]):
        while not self._stop_event.is_set():
            try:
                index, descriptor = work.get_nowait()
            except queue.Empty:
                return
            results[index] = self._execute_slot(index, descriptor)

    def _execute_slot(self, index: int, descriptor) -> RequestResult:
        if not isinstance(descriptor, RequestDescriptor):
            return RequestResult.failure(InvalidInputError(f"Not a request descriptor: {descriptor!r}"))

        def recover(e: Exception) -> RequestResult:
            return RequestResult.failure(TransportError(f"Unexpected error: {e}", descriptor.url, e))

        try:
            return self._error_boundary.capture(
                "fan_out:execute",
                lambda: self._client.execute(descriptor),
                recover,
                {"index": index, "url": descriptor.url},
            )
        except BcurlError as e:
            return RequestResult.failure(e)

    def _wait_for(self, workers: List[threading.Thread]):
        def on_interrupt():
            globals.logger.warning("Interrupted, waiting for in-flight requests to finish")
            self.stop()

        join_threads(workers, on_interrupt)

    @staticmethod
    def _collect(
            descriptors: List[RequestDescriptor], results: List[Optional[RequestResult]]
    ) -> List[RequestResult]:
        collected = []
        for descriptor, result in zip(descriptors, results):
            if result is None:
                url = getattr(descriptor, "url", None)
                result = RequestResult.failure(RunInterruptedError("Request not started: run interrupted", url))
            collected.append(result)
        return collected
