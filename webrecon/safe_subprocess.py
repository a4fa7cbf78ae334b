from __future__ import annotations

import logging
import subprocess  # nosec

# Reason: central wrapper validates executables against an allow list before invocation
from pathlib import Path
from typing import List, Optional, Sequence

_LOG = logging.getLogger("webrecon.subprocess")

_ALLOWED_EXECUTABLES = {
    "chromium",
    "chromium-browser",
    "chrome",
    "chrome.exe",
    "google-chrome",
    "google-chrome-stable",
    "google-chrome-beta",
    "google-chrome-unstable",
    "google chrome",
    "google chrome canary",
}


def register_allowed_executable(executable: str) -> None:
    """Allow an additional executable name (case-insensitive)."""
    if executable:
        _ALLOWED_EXECUTABLES.add(Path(executable).name.lower())


def is_allowed_executable(executable: str) -> bool:
    if not executable:
        return False
    return Path(executable).name.lower() in _ALLOWED_EXECUTABLES


def _ensure_allowed(cmd: Sequence[str]) -> Sequence[str]:
    if not cmd:
        raise ValueError("empty command passed to safe subprocess wrapper")
    executable = Path(cmd[0]).name.lower()
    if executable not in _ALLOWED_EXECUTABLES:
        raise ValueError(f"executable {cmd[0]!r} is not permitted by allow list")
    return cmd


def safe_run(
    cmd: Sequence[str],
    *,
    timeout: Optional[float] = None,
    capture_output: bool = False,
    text: bool = False,
    check: bool = False,
) -> subprocess.CompletedProcess:
    _ensure_allowed(cmd)
    _LOG.debug("safe_run executing cmd=%s timeout=%s", list(cmd), timeout)
    return subprocess.run(  # nosec
        list(cmd),
        timeout=timeout,
        capture_output=capture_output,
        text=text,
        check=check,
    )
    # Reason: _ensure_allowed enforces allow list, and shell is never enabled


def safe_popen(cmd: Sequence[str], **kwargs) -> subprocess.Popen:
    _ensure_allowed(cmd)
    _LOG.debug("safe_popen spawning cmd=%s", list(cmd))
    return subprocess.Popen(list(cmd), **kwargs)  # nosec
    # Reason: _ensure_allowed enforces allow list, and shell is never enabled


class BrowserProcess:
    """Handle around one browser child: start, wait with a deadline, kill.

    Usable as a context manager; leaving the block always kills and reaps the
    child if it is still running.
    """

    def __init__(self, cmd: Sequence[str]):
        self.cmd: List[str] = list(cmd)
        self.proc: Optional[subprocess.Popen] = None
        self.timed_out = False

    def start(self) -> "BrowserProcess":
        self.proc = safe_popen(self.cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                               stdin=subprocess.DEVNULL)
        return self

    def wait(self, timeout: float) -> int:
        """Wait up to ``timeout`` seconds; on expiry kill the child and re-raise."""
        if self.proc is None:
            raise RuntimeError("process not started")
        try:
            return self.proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self.timed_out = True
            self.kill()
            raise

    def kill(self) -> None:
        if self.proc is None or self.proc.poll() is not None:
            return
        try:
            self.proc.kill()
        except ProcessLookupError:
            return
        try:
            self.proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            _LOG.warning("browser pid=%s did not exit after kill", self.proc.pid)

    def __enter__(self) -> "BrowserProcess":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.kill()
        return False


TimeoutExpired = subprocess.TimeoutExpired
