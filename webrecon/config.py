"""Run configuration.

Every knob has a ``WEBRECON_*`` environment variable; command line flags
override the environment. Timeouts are expressed in milliseconds.
"""

from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, replace
from typing import Any, List

from .exceptions import ConfigurationError, OutputDirectoryError
from .ports import resolve_ports

DEFAULT_FINGERPRINTS = str(pathlib.Path(__file__).resolve().parent / 'data' / 'fingerprints.json')


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(name, f'expected an integer, got {raw!r}') from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Config:
    threads: int = 0
    ports: str = 'medium'
    scan_timeout: int = 100
    http_timeout: int = 3000
    screenshot_timeout: int = 30000
    chrome_path: str = ''
    proxy: str = ''
    resolution: str = '1440,900'
    save_body: bool = True
    screenshots: bool = True
    out_dir: str = '.'
    fingerprints_path: str = DEFAULT_FINGERPRINTS
    log_level: str = 'INFO'
    log_file: str = ''
    metrics_file: str = ''
    session_file: str = 'webrecon_session.json'

    @classmethod
    def from_env(cls) -> 'Config':
        return cls(
            threads=_env_int('WEBRECON_THREADS', 0),
            ports=os.environ.get('WEBRECON_PORTS', 'medium'),
            scan_timeout=_env_int('WEBRECON_SCAN_TIMEOUT', 100),
            http_timeout=_env_int('WEBRECON_HTTP_TIMEOUT', 3000),
            screenshot_timeout=_env_int('WEBRECON_SCREENSHOT_TIMEOUT', 30000),
            chrome_path=os.environ.get('WEBRECON_CHROME_PATH', ''),
            proxy=os.environ.get('WEBRECON_PROXY', ''),
            resolution=os.environ.get('WEBRECON_RESOLUTION', '1440,900'),
            save_body=_env_bool('WEBRECON_SAVE_BODY', True),
            screenshots=_env_bool('WEBRECON_SCREENSHOTS', True),
            out_dir=os.environ.get('WEBRECON_OUT_PATH', '.'),
            fingerprints_path=os.environ.get('WEBRECON_FINGERPRINTS', DEFAULT_FINGERPRINTS),
            log_level=os.environ.get('WEBRECON_LOG_LEVEL', 'INFO').upper(),
            log_file=os.environ.get('WEBRECON_LOG_FILE', ''),
            metrics_file=os.environ.get('WEBRECON_METRICS_FILE', ''),
        )

    def override(self, **changes: Any) -> 'Config':
        """Return a copy with every non-None value in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @property
    def worker_count(self) -> int:
        if self.threads and self.threads > 0:
            return self.threads
        return os.cpu_count() or 1

    def port_list(self) -> List[int]:
        return resolve_ports(self.ports)

    def validate(self) -> 'Config':
        """Check run-fatal settings and normalise the output directory."""
        if not self.out_dir:
            raise OutputDirectoryError('', 'output destination must be set')
        out = pathlib.Path(self.out_dir)
        if not out.exists():
            raise OutputDirectoryError(self.out_dir, 'output destination does not exist')
        if not out.is_dir():
            raise OutputDirectoryError(self.out_dir, 'output destination must be a directory')
        self.out_dir = os.path.normpath(self.out_dir)
        if self.chrome_path and not os.path.exists(self.chrome_path):
            raise ConfigurationError('chrome_path', f'Chrome path {self.chrome_path} does not exist')
        for name in ('scan_timeout', 'http_timeout', 'screenshot_timeout'):
            if getattr(self, name) <= 0:
                raise ConfigurationError(name, 'timeout must be positive')
        self.port_list()
        return self
