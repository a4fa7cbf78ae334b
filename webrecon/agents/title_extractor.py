from bs4 import BeautifulSoup

from ..events import Topic
from .base import Agent


def extract_title(body: bytes) -> str:
    """Text of the first <title> element, whitespace-trimmed; '' if absent."""
    soup = BeautifulSoup(body, "html.parser")
    if soup.title is None:
        return ""
    return soup.title.get_text().strip()


class URLPageTitleExtractor(Agent):
    ID = "agent:url_page_title_extractor"

    def register(self, session):
        session.dispatcher.subscribe(Topic.URL_RESPONSIVE, self.on_url_responsive)
        self.session = session

    def on_url_responsive(self, url: str) -> None:
        self.log.debug("[%s] Received new responsive URL %s", self.ID, url)
        page = self._page_for(url)
        if page is None:
            return
        self.session.limiter.spawn(self._extract, page)

    def _extract(self, page) -> None:
        body = self._read_body(page)
        if body is None:
            return
        try:
            page.page_title = extract_title(body)
        except Exception as exc:
            self.log.debug("[%s] Error parsing HTML body for %s: %s", self.ID, page.url, exc)
