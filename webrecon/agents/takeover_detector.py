import dns.exception

from ..events import Topic
from ..resolver import lookup_addrs_and_cname
from ..takeover import TAKEOVER_TAG, evaluate
from .base import Agent


class URLTakeoverDetector(Agent):
    ID = "agent:url_takeover_detector"

    def register(self, session):
        session.dispatcher.subscribe(Topic.URL_RESPONSIVE, self.on_url_responsive)
        self.session = session

    def on_url_responsive(self, url: str) -> None:
        self.log.debug("[%s] Received new responsive URL %s", self.ID, url)
        page = self._page_for(url)
        if page is None:
            return
        if page.is_ip_host():
            self.log.debug("[%s] Skipping takeover detection on IP URL %s", self.ID, url)
            return
        self.session.limiter.spawn(self._detect, page)

    def _detect(self, page) -> None:
        try:
            addrs, cname = lookup_addrs_and_cname(page.hostname)
        except (OSError, dns.exception.DNSException) as exc:
            self.log.debug("[%s] Error: %s", self.ID, exc)
            self.log.error("Unable to resolve %s for takeover detection", page.hostname)
            return
        body = self._read_body(page)
        if body is None:
            return
        result = evaluate(cname, addrs, body.decode("utf-8", errors="replace"))
        if result is None:
            return
        provider = result.provider
        page.add_tag(provider.name, "info", provider.link)
        if result.vulnerable:
            page.add_tag(TAKEOVER_TAG, "danger", provider.remediation)
            self.log.warning("%s: vulnerable to takeover on %s", page.url, provider.name)
