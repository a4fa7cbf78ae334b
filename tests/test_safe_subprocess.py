import subprocess

import pytest

from webrecon import safe_subprocess
from webrecon.safe_subprocess import (
    BrowserProcess,
    is_allowed_executable,
    register_allowed_executable,
    safe_popen,
    safe_run,
)


def test_allow_list():
    assert is_allowed_executable("/usr/bin/chromium")
    assert is_allowed_executable("C:/Program Files (x86)/Google/Chrome/Application/chrome.exe")
    assert not is_allowed_executable("/bin/sh")
    assert not is_allowed_executable("")


def test_rejects_disallowed_commands():
    with pytest.raises(ValueError):
        safe_run(["/bin/sh", "-c", "true"])
    with pytest.raises(ValueError):
        safe_popen(["rm", "-rf", "/"])
    with pytest.raises(ValueError):
        safe_run([])


def test_register_allowed_executable():
    register_allowed_executable("/opt/custom/headless-shell")
    assert is_allowed_executable("/somewhere/else/headless-shell")


class _FakePopen:
    def __init__(self, cmd, **kwargs):
        self.cmd = cmd
        self.kwargs = kwargs
        self.pid = 4242
        self.killed = False
        self.returncode = None

    def wait(self, timeout=None):
        if self.killed:
            self.returncode = -9
            return self.returncode
        raise subprocess.TimeoutExpired(self.cmd, timeout)

    def poll(self):
        return self.returncode

    def kill(self):
        self.killed = True


def test_browser_process_timeout_kills(monkeypatch):
    monkeypatch.setattr(safe_subprocess.subprocess, "Popen", _FakePopen)
    proc = BrowserProcess(["chromium", "--headless", "http://example.com/"]).start()
    assert proc.proc.kwargs["stdout"] is subprocess.DEVNULL
    with pytest.raises(subprocess.TimeoutExpired):
        proc.wait(0.01)
    assert proc.timed_out
    assert proc.proc.killed


def test_browser_process_context_manager_kills_on_exit(monkeypatch):
    monkeypatch.setattr(safe_subprocess.subprocess, "Popen", _FakePopen)
    with BrowserProcess(["chromium", "about:blank"]) as proc:
        pass
    assert proc.proc.killed


def test_wait_before_start():
    with pytest.raises(RuntimeError):
        BrowserProcess(["chromium"]).wait(1)
