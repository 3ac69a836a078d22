"""Message-driven worker around a ``GrowthEngine``.

Requests arrive on an inbox queue and are dispatched on a dedicated thread;
progress and errors are posted to an outbox queue that the driver drains.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from Growth.engine import GrowthEngine, RunHandle
from Growth.protocol import (
    ErrorEvent,
    EventType,
    ProgressEvent,
    WorkerEvent,
    WorkerRequest,
)
from Growth.snapshot import ProgressSnapshot

logger = logging.getLogger(__name__)

_STOP = object()


class GrowthWorker:
    """Dispatch ``GenerateEvent``/``CancelEvent`` requests to an engine."""

    def __init__(self, engine: GrowthEngine | None = None) -> None:
        self.engine = engine if engine is not None else GrowthEngine()
        self.outbox: "queue.Queue[WorkerEvent]" = queue.Queue()
        self._inbox: "queue.Queue[object]" = queue.Queue()
        self._handle: Optional[RunHandle] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            raise RuntimeError("worker thread already running")
        self._thread = threading.Thread(target=self._loop, name="growth-worker", daemon=True)
        self._thread.start()

    def post(self, message: WorkerRequest) -> None:
        self._inbox.put(message)

    def get(self, timeout: float | None = None) -> WorkerEvent:
        """Return the next outgoing event; raises ``queue.Empty`` on timeout."""
        return self.outbox.get(timeout=timeout)

    def close(self, timeout: float | None = None) -> None:
        """Cancel the current run and stop the dispatcher thread."""
        self._inbox.put(_STOP)
        if self._thread is not None:
            self._thread.join(timeout)
        if self._handle is not None:
            self._handle.cancel()
            self._handle.join(timeout)

    def _emit(self, snapshot: ProgressSnapshot) -> None:
        self.outbox.put(ProgressEvent.from_snapshot(snapshot))

    def _dispatch(self, message: WorkerRequest) -> None:
        if message.type is EventType.GENERATE:
            try:
                self._handle = self.engine.start(message.pick_count, self._emit)
            except (ValueError, RuntimeError) as exc:
                logger.warning("generate rejected: %s", exc)
                self.outbox.put(ErrorEvent(message=str(exc)))
        elif message.type is EventType.CANCEL:
            if self._handle is not None:
                self._handle()
        else:
            logger.error("Unsupported request type: %s", message.type)
            self.outbox.put(ErrorEvent(message=f"Unsupported request type: {message.type}"))

    def _loop(self) -> None:
        while True:
            message = self._inbox.get()
            if message is _STOP:
                return
            self._dispatch(message)
