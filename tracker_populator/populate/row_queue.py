"""Single-worker record queue with per-record completion and drain signals."""

from __future__ import annotations

import logging
import queue
import threading
from types import TracebackType
from typing import Any, Callable

from tracker_populator.common.models import Record

Handler = Callable[[Record], Any]
Callback = Callable[[BaseException | None, Any], None]

_STOP = object()


class RowQueue:
    """Runs ``handler`` on one record at a time, in arrival order.

    ``push`` blocks while a bounded queue is full. Every pushed record gets
    its callback invoked with ``(error, result)`` once its handler returns or
    raises; the worker then moves on regardless of the outcome. ``on_drain``
    fires whenever nothing is queued and nothing is in flight.
    """

    def __init__(
        self,
        handler: Handler,
        *,
        maxsize: int = 0,
        on_drain: Callable[[], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.handler = handler
        self.on_drain = on_drain
        self.logger = logger or logging.getLogger(__name__)
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._pending = 0
        self._lock = threading.Lock()
        self._drained = threading.Event()
        self._drained.set()
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="row-queue", daemon=True)
        self._worker.start()

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    def push(self, record: Record, callback: Callback | None = None) -> None:
        if self._closed:
            raise RuntimeError("RowQueue is closed")
        with self._lock:
            self._pending += 1
            self._drained.clear()
        self._queue.put((record, callback))

    def wait_drained(self, timeout: float | None = None) -> bool:
        return self._drained.wait(timeout)

    def close(self, timeout: float | None = None) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._worker.join(timeout)

    def __enter__(self) -> "RowQueue":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                self._queue.task_done()
                return
            record, callback = item
            try:
                self._process(record, callback)
            finally:
                self._queue.task_done()
                self._finish_one()

    def _process(self, record: Record, callback: Callback | None) -> None:
        error: BaseException | None = None
        result: Any = None
        try:
            result = self.handler(record)
        except Exception as exc:
            error = exc

        if callback is None:
            return
        try:
            callback(error, result)
        except Exception:
            self.logger.exception("record completion callback failed for line %s", record.line)

    def _finish_one(self) -> None:
        with self._lock:
            self._pending -= 1
            drained = self._pending == 0
        if not drained:
            return
        if self.on_drain is not None:
            try:
                self.on_drain()
            except Exception:
                self.logger.exception("drain callback failed")
        with self._lock:
            if self._pending == 0:
                self._drained.set()
