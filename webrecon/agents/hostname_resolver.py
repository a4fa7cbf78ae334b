from ..events import Topic
from ..resolver import lookup_host
from .base import Agent


class URLHostnameResolver(Agent):
    ID = "agent:url_hostname_resolver"

    def register(self, session):
        session.dispatcher.subscribe(Topic.URL_RESPONSIVE, self.on_url_responsive)
        self.session = session

    def on_url_responsive(self, url: str) -> None:
        self.log.debug("[%s] Received new responsive URL %s", self.ID, url)
        page = self._page_for(url)
        if page is None:
            return
        if page.is_ip_host():
            page.addrs = [page.hostname]
            return
        self.session.limiter.spawn(self._resolve, page)

    def _resolve(self, page) -> None:
        try:
            addrs = lookup_host(page.hostname)
        except OSError as exc:
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.error("Failed to resolve hostname for %s", page.url)
            return
        page.addrs = addrs
