"""Bounded work limiter shared by every pipeline stage.

``spawn`` blocks its caller until one of ``size`` slots is free and runs the
unit on a worker thread; the slot is given back when the unit returns or
raises. Outstanding work (running units plus dispatched handler invocations
that have not finished yet) is tracked so the run can wait for a full drain.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

logger = logging.getLogger('webrecon.limiter')


class WorkLimiter:
    def __init__(self, size: int, thread_name_prefix: str = 'webrecon-worker'):
        if size < 1:
            raise ValueError('limiter size must be at least 1')
        self.size = size
        self._slots = threading.BoundedSemaphore(size)
        self._executor = ThreadPoolExecutor(max_workers=size, thread_name_prefix=thread_name_prefix)
        self._cond = threading.Condition()
        self._outstanding = 0
        self._in_flight = 0
        self.peak_in_flight = 0

    # ---------- outstanding work accounting ----------

    def begin(self) -> None:
        with self._cond:
            self._outstanding += 1

    def done(self) -> None:
        with self._cond:
            if self._outstanding <= 0:
                raise RuntimeError("done() called with no outstanding work")
            self._outstanding -= 1
            if self._outstanding == 0:
                self._cond.notify_all()

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self._outstanding

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no work is outstanding. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    # ---------- bounded units ----------

    def spawn(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        self._slots.acquire()
        self.begin()
        with self._cond:
            self._in_flight += 1
            if self._in_flight > self.peak_in_flight:
                self.peak_in_flight = self._in_flight
        try:
            return self._executor.submit(self._run, fn, args, kwargs)
        except RuntimeError:
            self._release()
            raise

    def _run(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception:
            logger.exception('unit of work %s failed', getattr(fn, '__qualname__', fn))
            return None
        finally:
            self._release()

    def _release(self) -> None:
        with self._cond:
            self._in_flight -= 1
        self._slots.release()
        self.done()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
