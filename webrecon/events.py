"""In-process publish/subscribe broker connecting the pipeline stages."""

from __future__ import annotations

import enum
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from .limiter import WorkLimiter

logger = logging.getLogger('webrecon.events')

Handler = Callable[..., Any]


class Topic(enum.Enum):
    HOST_DISCOVERED = 'host'            # (host,)
    PORT_OPEN = 'tcp_port'              # (port, host)
    URL_CLASSIFIED = 'url'              # (url,)
    URL_RESPONSIVE = 'url_responsive'   # (url,)
    RUN_ENDING = 'run_ending'           # ()


class Dispatcher:
    """Topic registry; every handler invocation runs as its own task.

    Invocations are counted as outstanding work on the limiter from the moment
    they are published until the handler returns, so a drain cannot be observed
    while an event is still queued.
    """

    def __init__(self, limiter: WorkLimiter, max_workers: Optional[int] = None):
        self._limiter = limiter
        self._lock = threading.Lock()
        self._handlers: Dict[Topic, List[Handler]] = {topic: [] for topic in Topic}
        workers = max_workers or max(32, limiter.size * 4)
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix='webrecon-event')

    def subscribe(self, topic: Topic, handler: Handler) -> None:
        with self._lock:
            self._handlers[topic].append(handler)

    def handlers(self, topic: Topic) -> List[Handler]:
        with self._lock:
            return list(self._handlers[topic])

    def publish(self, topic: Topic, *args: Any) -> int:
        """Schedule every handler of ``topic``; returns without waiting."""
        handlers = self.handlers(topic)
        for handler in handlers:
            self._limiter.begin()
            try:
                self._executor.submit(self._invoke, topic, handler, args)
            except RuntimeError:
                self._limiter.done()
                logger.warning('dispatcher closed, dropping %s event', topic.value)
                return 0
        return len(handlers)

    def broadcast(self, topic: Topic, *args: Any) -> None:
        """Run every handler of ``topic`` on the calling thread (teardown)."""
        for handler in self.handlers(topic):
            try:
                handler(*args)
            except Exception:
                logger.exception('handler %s failed on %s', _name(handler), topic.value)

    def _invoke(self, topic: Topic, handler: Handler, args: tuple) -> None:
        try:
            handler(*args)
        except Exception:
            logger.exception('handler %s failed on %s', _name(handler), topic.value)
        finally:
            self._limiter.done()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def _name(handler: Handler) -> str:
    return getattr(handler, '__qualname__', repr(handler))
