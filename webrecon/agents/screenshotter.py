"""Headless Chrome/Chromium screenshots of responsive URLs.

Each capture runs the browser as a separate child process with its own
profile directory below a per-run temporary root. The root is removed when
the run ends.
"""

import contextlib
import os
import re
import shutil
import subprocess  # nosec
import tempfile

from ..events import Topic
from ..exceptions import BrowserNotFoundError, ScreenshotError, ScreenshotTimeoutError
from ..safe_subprocess import BrowserProcess, TimeoutExpired, register_allowed_executable, safe_run
from ..utils.identity import random_user_agent
from .base import Agent

KNOWN_BROWSER_PATHS = (
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-beta",
    "/usr/bin/google-chrome-unstable",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    "C:/Program Files (x86)/Google/Chrome/Application/chrome.exe",
)
BROWSER_NAMES = ("chromium", "chromium-browser", "google-chrome", "google-chrome-stable", "chrome")

BASE_FLAGS = (
    "--headless",
    "--disable-gpu",
    "--hide-scrollbars",
    "--mute-audio",
    "--disable-notifications",
    "--no-first-run",
    "--disable-crash-reporter",
    "--ignore-certificate-errors",
    "--incognito",
    "--disable-infobars",
    "--disable-sync",
    "--no-default-browser-check",
)

# HTTPS captures are unreliable below this Chromium major version
MIN_CHROMIUM_MAJOR = 72
_VERSION_RE = re.compile(r"(\d+)\.")


def locate_browser(override: str = "") -> str:
    if override:
        register_allowed_executable(override)
        return override
    for path in KNOWN_BROWSER_PATHS:
        if os.path.exists(path):
            return path
    for name in BROWSER_NAMES:
        found = shutil.which(name)
        if found:
            return found
    raise BrowserNotFoundError(list(KNOWN_BROWSER_PATHS) + list(BROWSER_NAMES))


def browser_major_version(output: str):
    m = _VERSION_RE.search(output or "")
    return int(m.group(1)) if m else None


class URLScreenshotter(Agent):
    ID = "agent:url_screenshotter"

    def __init__(self):
        super().__init__()
        self.browser_path = ""
        self.temp_root = ""

    def register(self, session):
        self.session = session
        self.browser_path = locate_browser(session.config.chrome_path)
        self.log.debug("[%s] Located Chrome/Chromium binary at %s", self.ID, self.browser_path)
        self.check_browser_version()
        self.temp_root = tempfile.mkdtemp(prefix="webrecon-chrome-")
        self.log.debug("[%s] Created temporary user directory at: %s", self.ID, self.temp_root)
        session.dispatcher.subscribe(Topic.URL_RESPONSIVE, self.on_url_responsive)
        session.dispatcher.subscribe(Topic.RUN_ENDING, self.on_run_ending)

    def check_browser_version(self) -> None:
        if "chrome" in self.browser_path.lower():
            self.log.warning("Using unreliable Google Chrome for screenshots. Install Chromium for better results.")
            return
        try:
            out = safe_run([self.browser_path, "--version"], timeout=10, capture_output=True, text=True)
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.warning("An error occurred while trying to determine version of Chromium.")
            return
        major = browser_major_version(out.stdout)
        if major is None:
            self.log.warning("Unable to determine version of Chromium. Screenshotting might be unreliable.")
        elif major < MIN_CHROMIUM_MAJOR:
            self.log.warning("An older version of Chromium is installed. "
                             "Screenshotting of HTTPS URLs might be unreliable.")

    def on_url_responsive(self, url: str) -> None:
        self.log.debug("[%s] Received new responsive URL %s", self.ID, url)
        page = self._page_for(url)
        if page is None:
            return
        self.session.limiter.spawn(self.screenshot_page, page)

    def on_run_ending(self) -> None:
        if self.temp_root:
            shutil.rmtree(self.temp_root, ignore_errors=True)
            self.log.debug("[%s] Deleted temporary user directory at: %s", self.ID, self.temp_root)

    @contextlib.contextmanager
    def profile_dir(self):
        path = tempfile.mkdtemp(prefix="profile-", dir=self.temp_root)
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)

    def build_command(self, url: str, output_path: str, profile: str):
        cfg = self.session.config
        cmd = [self.browser_path, *BASE_FLAGS,
               f"--user-data-dir={profile}",
               f"--user-agent={random_user_agent()}",
               f"--window-size={cfg.resolution}",
               f"--screenshot={output_path}"]
        if hasattr(os, "geteuid") and os.geteuid() == 0:
            cmd.append("--no-sandbox")
        if cfg.proxy:
            cmd.append(f"--proxy-server={cfg.proxy}")
        cmd.append(url)
        return cmd

    def capture(self, url: str, output_path: str) -> None:
        """Run one browser capture; raises ScreenshotError on any failure."""
        timeout = self.session.config.screenshot_timeout / 1000.0
        with self.profile_dir() as profile:
            cmd = self.build_command(url, output_path, profile)
            try:
                with BrowserProcess(cmd) as proc:
                    code = proc.wait(timeout)
            except TimeoutExpired as exc:
                raise ScreenshotTimeoutError(url, timeout) from exc
            except (OSError, ValueError) as exc:
                raise ScreenshotError(url, str(exc)) from exc
        if code != 0:
            raise ScreenshotError(url, f"browser exited with status {code}")

    def screenshot_page(self, page) -> None:
        rel = f"screenshots/{page.base_filename()}.png"
        path = self.session.get_file_path(rel)
        stats = self.session.stats
        try:
            self.capture(page.url, path)
        except ScreenshotTimeoutError as exc:
            stats.increment("screenshot_failed")
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.error("%s: screenshot timed out", page.url)
            return
        except ScreenshotError as exc:
            stats.increment("screenshot_failed")
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.error("%s: screenshot failed: %s", page.url, exc.details.get("reason", exc))
            return

        stats.increment("screenshot_successful")
        self.log.info("%s: screenshot successful", page.url)
        page.screenshot_path = rel
        page.has_screenshot = True
        if not self.session.is_file_saved(path, self.session.config.screenshot_timeout / 1000.0):
            self.log.error("Error: file %r not saved", rel)
