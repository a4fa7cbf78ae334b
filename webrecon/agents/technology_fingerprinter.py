from ..events import Topic
from ..fingerprint import FingerprintEngine
from .base import Agent


class URLTechnologyFingerprinter(Agent):
    """Tags pages with the technologies their headers and body reveal.

    The ruleset is loaded when the agent is registered, so a missing or broken
    rules file stops the run before any scanning starts.
    """

    ID = "agent:url_technology_fingerprinter"

    def __init__(self, engine: FingerprintEngine = None):
        super().__init__()
        self.engine = engine

    def register(self, session):
        if self.engine is None:
            self.engine = FingerprintEngine.from_file(session.config.fingerprints_path)
        self.log.debug("[%s] Loaded %d fingerprints", self.ID, len(self.engine))
        session.dispatcher.subscribe(Topic.URL_RESPONSIVE, self.on_url_responsive)
        self.session = session

    def on_url_responsive(self, url: str) -> None:
        self.log.debug("[%s] Received new responsive URL %s", self.ID, url)
        page = self._page_for(url)
        if page is None:
            return
        self.session.limiter.spawn(self._fingerprint, page)

    def _fingerprint(self, page) -> None:
        body = self._read_body(page)
        html = body.decode("utf-8", errors="replace") if body else ""
        for detection in self.engine.detect(page.header_pairs(), html):
            page.add_tag(detection.rule.name, "info", detection.rule.website)
