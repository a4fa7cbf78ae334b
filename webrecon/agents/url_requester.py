import requests
import urllib3

from ..events import Topic
from ..utils.identity import forged_request_headers
from ..utils.io import write_bytes
from .base import Agent

# scan targets are fetched with verify=False
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

FILE_SAVE_TIMEOUT = 30.0


class URLRequester(Agent):
    ID = "agent:url_requester"

    def register(self, session):
        session.dispatcher.subscribe(Topic.URL_CLASSIFIED, self.on_url)
        self.session = session

    def on_url(self, url: str) -> None:
        self.log.debug("[%s] Received new URL %s", self.ID, url)
        self.session.limiter.spawn(self._request, url)

    def fetch(self, url: str) -> requests.Response:
        cfg = self.session.config
        proxies = {"http": cfg.proxy, "https": cfg.proxy} if cfg.proxy else None
        return requests.get(
            url,
            headers=forged_request_headers(),
            timeout=cfg.http_timeout / 1000.0,
            proxies=proxies,
            verify=False,
            allow_redirects=False,
        )

    def _request(self, url: str) -> None:
        stats = self.session.stats
        try:
            resp = self.fetch(url)
        except requests.exceptions.Timeout as exc:
            stats.increment("request_failed")
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.error("%s: request timeout", url)
            return
        except requests.exceptions.RequestException as exc:
            stats.increment("request_failed")
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.debug("%s: failed", url)
            return

        stats.increment("request_successful")
        bucket = stats.record_status(resp.status_code)
        status = f"{resp.status_code} {resp.reason or ''}".strip()
        if bucket == "response_code_5xx":
            self.log.warning("%s: %s", url, status)
        else:
            self.log.info("%s: %s", url, status)

        try:
            page = self.session.add_page(url)
        except ValueError as exc:
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.error("Failed to create page for URL: %s", url)
            return

        page.status = status
        for name, value in self._header_pairs(resp):
            page.add_header(name, value)
        location = resp.headers.get("Location") if bucket == "response_code_3xx" else None
        if location:
            page.add_note(f"Redirects to {location}")

        self.write_headers(page)
        if self.session.config.save_body:
            self.write_body(page, resp.content)

        self.session.publish(Topic.URL_RESPONSIVE, url)

    @staticmethod
    def _header_pairs(resp: requests.Response):
        """Response headers in wire order, repeated headers joined by a space."""
        raw = getattr(resp.raw, "headers", None)
        if raw is not None and hasattr(raw, "getlist"):
            return [(name, " ".join(raw.getlist(name))) for name in dict.fromkeys(raw.keys())]
        return list(resp.headers.items())

    def write_headers(self, page) -> None:
        rel = f"headers/{page.base_filename()}.txt"
        lines = [page.status] + [f"{name}: {value}" for name, value in page.header_pairs()]
        if self._persist(page, rel, ("\n".join(lines) + "\n").encode("utf-8"), "HTTP response headers"):
            page.headers_path = rel

    def write_body(self, page, body: bytes) -> None:
        rel = f"html/{page.base_filename()}.html"
        if self._persist(page, rel, body or b"", "HTTP response body"):
            page.body_path = rel

    def _persist(self, page, rel: str, data: bytes, what: str) -> bool:
        path = self.session.get_file_path(rel)
        try:
            write_bytes(path, data)
        except OSError as exc:
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.error("Failed to write %s for %s to %s", what, page.url, path)
            return False
        if not self.session.is_file_saved(path, FILE_SAVE_TIMEOUT):
            self.log.error("Error: file %r not saved", rel)
            return False
        return True
