from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

from .model import DeferredAction

logger = logging.getLogger(__name__)


class DeferredActionRunner:
    """
    Runs actions off the control loop after their response has been sent.

    With ``single_flight`` an action scheduled while the previous one is still
    running is dropped, so overlapping network cycles cannot interleave.
    """

    def __init__(self, *, single_flight: bool = True):
        self.single_flight = single_flight
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sutcontrol-deferred")
        self._lock = threading.Lock()
        self._pending: Future | None = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._pending is not None and not self._pending.done()

    def _run(self, action: DeferredAction) -> None:
        try:
            action()
        except Exception:
            logger.exception("deferred action %r failed", getattr(action, "__qualname__", action))

    def schedule(self, action: DeferredAction) -> None:
        with self._lock:
            if self.single_flight and self._pending is not None and not self._pending.done():
                logger.warning("deferred action already running; dropping %r", getattr(action, "__qualname__", action))
                return
            self._pending = self._executor.submit(self._run, action)

    def join(self, timeout: float | None = None) -> bool:
        with self._lock:
            pending = self._pending
        if pending is None:
            return True
        done, _ = wait([pending], timeout=timeout)
        return bool(done)

    def shutdown(self, wait_for_pending: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_pending)
