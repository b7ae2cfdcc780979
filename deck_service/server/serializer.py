# deck_service/server/serializer.py

import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional, Tuple

from deck_service.common.logging_utils import get_logger

log = get_logger("server.serializer")

_Job = Tuple[Future, Callable[..., Any], Tuple[Any, ...]]


class RequestSerializer:
    """
    Single-writer gate for deck mutations.

    Mutations go through `submit`/`call` and are run one at a time by a
    private worker thread. `locked` runs a short operation in the caller's
    thread under the same lock, so a reader never overlaps a mutation.
    """

    def __init__(self, name: str = "deck-serializer") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._queue: "queue.Queue[Optional[_Job]]" = queue.Queue()
        self._stop_event = threading.Event()
        self._submit_lock = threading.Lock()  # orders submit() against stop()
        self._worker: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._worker = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._worker.start()
        log.debug(f"{self.name} started")

    def stop(self, timeout: float = 5.0) -> None:
        if self._worker is None:
            return
        with self._submit_lock:
            self._stop_event.set()
            self._queue.put(None)  # wake the worker
        self._worker.join(timeout)
        self._worker = None
        log.debug(f"{self.name} stopped")

    def __enter__(self) -> "RequestSerializer":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        fut: Future = Future()
        with self._submit_lock:
            if not self.running:
                raise RuntimeError(f"{self.name} is not running")
            self._queue.put((fut, fn, args))
        return fut

    def call(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Submit and wait. Exceptions raised by `fn` are re-raised here."""
        return self.submit(fn, *args).result()

    def locked(self, fn: Callable[..., Any], *args: Any) -> Any:
        with self._lock:
            return fn(*args)

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            if job is None:
                break
            fut, fn, args = job
            if not fut.set_running_or_notify_cancel():
                continue
            try:
                with self._lock:
                    result = fn(*args)
            except Exception as e:
                fut.set_exception(e)
            else:
                fut.set_result(result)
