"""Run statistics.

Counters are bumped from many worker threads while a run is in progress and
read once the run has finished.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

COUNTERS = (
    'port_open',
    'port_closed',
    'request_successful',
    'request_failed',
    'response_code_2xx',
    'response_code_3xx',
    'response_code_4xx',
    'response_code_5xx',
    'screenshot_successful',
    'screenshot_failed',
)

_JSON_KEYS = {
    'port_open': 'portOpen',
    'port_closed': 'portClosed',
    'request_successful': 'requestSuccessful',
    'request_failed': 'requestFailed',
    'response_code_2xx': 'responseCode2xx',
    'response_code_3xx': 'responseCode3xx',
    'response_code_4xx': 'responseCode4xx',
    'response_code_5xx': 'responseCode5xx',
    'screenshot_successful': 'screenshotSuccessful',
    'screenshot_failed': 'screenshotFailed',
}


def _iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class RunStats:
    def __init__(self, started_at: Optional[float] = None):
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {name: 0 for name in COUNTERS}
        self.started_at: float = started_at if started_at is not None else time.time()
        self.finished_at: Optional[float] = None

    def increment(self, counter: str, amount: int = 1) -> int:
        if counter not in self._counts:
            raise KeyError(f'unknown counter {counter!r}')
        with self._lock:
            self._counts[counter] += amount
            return self._counts[counter]

    def record_status(self, status_code: int) -> str:
        """Bump the response bucket for ``status_code`` and return its name."""
        if status_code >= 500:
            bucket = 'response_code_5xx'
        elif status_code >= 400:
            bucket = 'response_code_4xx'
        elif status_code >= 300:
            bucket = 'response_code_3xx'
        else:
            bucket = 'response_code_2xx'
        self.increment(bucket)
        return bucket

    def __getattr__(self, name: str) -> int:
        counts = self.__dict__.get('_counts')
        if counts is not None and name in counts:
            return counts[name]
        raise AttributeError(name)

    def finish(self) -> None:
        self.finished_at = time.time()

    @property
    def duration(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.time()
        return max(0.0, end - self.started_at)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'startedAt': _iso(self.started_at),
            'finishedAt': _iso(self.finished_at),
            'duration': round(self.duration, 3),
        }
        for name, value in self.snapshot().items():
            data[_JSON_KEYS[name]] = value
        return data
