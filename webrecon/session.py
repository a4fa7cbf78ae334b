"""Run session: target record store, artifact paths and the run summary."""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Dict, List, Optional

from . import __version__
from .config import Config
from .events import Dispatcher, Topic
from .exceptions import OutputDirectoryError
from .limiter import WorkLimiter
from .page import Page
from .stats import RunStats
from .utils.io import is_file_saved

logger = logging.getLogger('webrecon.session')

ARTIFACT_DIRS = ('headers', 'html', 'screenshots')


class Session:
    def __init__(self, config: Config, limiter: Optional[WorkLimiter] = None):
        self.version = __version__
        self.config = config
        self.stats = RunStats()
        self.pages: Dict[str, Page] = {}
        self._lock = threading.Lock()
        self.ports: List[int] = config.port_list()
        self.limiter = limiter or WorkLimiter(config.worker_count)
        self.dispatcher = Dispatcher(self.limiter)
        self.agents: List[Any] = []
        self._ended = False

    # ---------- lifecycle ----------

    def start(self) -> 'Session':
        for name in ARTIFACT_DIRS:
            path = self.get_file_path(name)
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as exc:
                raise OutputDirectoryError(path, f'failed to create required directory ({exc})') from exc
        logger.debug('session started out_dir=%s threads=%d ports=%d',
                     self.config.out_dir, self.limiter.size, len(self.ports))
        return self

    def register(self, agent: Any) -> None:
        agent.register(self)
        self.agents.append(agent)
        logger.debug('registered %s', agent.ID)

    def publish(self, topic: Topic, *args: Any) -> int:
        return self.dispatcher.publish(topic, *args)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self.limiter.wait(timeout)

    def end(self) -> None:
        """Broadcast RUN_ENDING once and stamp the finish time."""
        if self._ended:
            return
        self._ended = True
        self.dispatcher.broadcast(Topic.RUN_ENDING)
        self.stats.finish()

    def close(self) -> None:
        self.dispatcher.shutdown()
        self.limiter.shutdown()

    # ---------- record store ----------

    def add_page(self, url: str) -> Page:
        """Return the record for ``url``, creating it on first use."""
        with self._lock:
            page = self.pages.get(url)
            if page is not None:
                return page
            page = Page(url)
            self.pages[url] = page
            return page

    def get_page(self, url: str) -> Optional[Page]:
        with self._lock:
            return self.pages.get(url)

    def get_page_by_uuid(self, page_id: str) -> Optional[Page]:
        with self._lock:
            for page in self.pages.values():
                if page.uuid == page_id:
                    return page
        return None

    # ---------- artifacts ----------

    def get_file_path(self, rel: str) -> str:
        return os.path.join(self.config.out_dir, rel)

    def read_file(self, rel: str) -> bytes:
        with open(self.get_file_path(rel), 'rb') as fh:
            return fh.read()

    def is_file_saved(self, path: str, timeout: float) -> bool:
        return is_file_saved(path, timeout)

    # ---------- summary ----------

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            pages = dict(self.pages)
        return {
            'version': self.version,
            'stats': self.stats.to_dict(),
            'pages': {url: page.to_dict() for url, page in pages.items()},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def save_to_file(self, filename: str) -> str:
        path = self.get_file_path(filename)
        with open(path, 'w', encoding='utf-8') as fh:
            fh.write(self.to_json())
        return path
