"""Analysis stages fed by URL_RESPONSIVE: resolver, title, technology, takeover."""
import json
import logging
import threading
import time
from unittest.mock import patch

import dns.exception
import pytest

from webrecon.agents import (
    URLHostnameResolver,
    URLPageTitleExtractor,
    URLTakeoverDetector,
    URLTechnologyFingerprinter,
)
from webrecon.agents import hostname_resolver, takeover_detector, title_extractor
from webrecon.agents.title_extractor import extract_title
from webrecon.events import Topic
from webrecon.exceptions import RulesetError
from webrecon.fingerprint import FingerprintEngine, compile_rule
from webrecon.session import Session
from webrecon.takeover import TAKEOVER_TAG


def _page_with_body(session, url, body=None, headers=()):
    page = session.add_page(url)
    for name, value in headers:
        page.add_header(name, value)
    if body is not None:
        rel = f"html/{page.base_filename()}.html"
        with open(session.get_file_path(rel), "wb") as fh:
            fh.write(body)
        page.body_path = rel
    return page


def _fire(session, url):
    session.publish(Topic.URL_RESPONSIVE, url)
    assert session.wait(timeout=10)


class TestHostnameResolver:
    def test_resolves_hostname(self, session):
        session.register(URLHostnameResolver())
        page = _page_with_body(session, "http://example.com/")
        with patch.object(hostname_resolver, "lookup_host", return_value=["93.184.216.34"]):
            _fire(session, page.url)
        assert page.addrs == ["93.184.216.34"]

    def test_ip_host_skips_lookup(self, session):
        session.register(URLHostnameResolver())
        page = _page_with_body(session, "http://10.1.2.3:8080/")
        with patch.object(hostname_resolver, "lookup_host") as lookup:
            _fire(session, page.url)
        lookup.assert_not_called()
        assert page.addrs == ["10.1.2.3"]

    def test_lookup_failure_leaves_addrs_empty(self, session):
        session.register(URLHostnameResolver())
        page = _page_with_body(session, "http://nowhere.invalid/")
        with patch.object(hostname_resolver, "lookup_host", side_effect=OSError("nxdomain")):
            _fire(session, page.url)
        assert page.addrs == []

    def test_unknown_page_is_ignored(self, session):
        session.register(URLHostnameResolver())
        with patch.object(hostname_resolver, "lookup_host") as lookup:
            _fire(session, "http://never-requested.example/")
        lookup.assert_not_called()


class TestTitleExtractor:
    @pytest.mark.parametrize("body,title", [
        (b"<html><head><title>  Welcome \n</title></head></html>", "Welcome"),
        (b"<html><head></head><body>no title</body></html>", ""),
        (b"<TITLE>Upper</TITLE>", "Upper"),
        (b"<title>Fish &amp; Chips</title>", "Fish & Chips"),
    ])
    def test_extract_title(self, body, title):
        assert extract_title(body) == title

    def test_sets_page_title(self, session):
        session.register(URLPageTitleExtractor())
        page = _page_with_body(session, "http://example.com/", b"<title>Dashboard</title>")
        _fire(session, page.url)
        assert page.page_title == "Dashboard"

    def test_parse_error_is_skipped_quietly(self, session, caplog):
        session.register(URLPageTitleExtractor())
        page = _page_with_body(session, "http://example.com/", b"<title>x</title>")
        with patch.object(title_extractor, "extract_title", side_effect=ValueError("bad markup")):
            with caplog.at_level(logging.DEBUG):
                _fire(session, page.url)
        assert page.page_title == ""
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    def test_missing_body_leaves_title_empty(self, session):
        session.register(URLPageTitleExtractor())
        page = _page_with_body(session, "http://example.com/")
        _fire(session, page.url)
        assert page.page_title == ""


class TestTechnologyFingerprinter:
    RULES = [
        {"name": "Nginx", "website": "https://nginx.org/en", "headers": {"Server": "nginx"}},
        {"name": "WordPress", "website": "https://wordpress.org",
         "meta": {"generator": "^WordPress"}, "implies": ["PHP"]},
        {"name": "PHP", "website": "https://php.net"},
    ]

    def _agent(self, session):
        engine = FingerprintEngine([compile_rule(r) for r in self.RULES])
        agent = URLTechnologyFingerprinter(engine)
        session.register(agent)
        return agent

    def test_single_header_match_adds_one_tag(self, session):
        self._agent(session)
        page = _page_with_body(session, "http://example.com/", b"<p>hi</p>", [("Server", "nginx/1.24")])
        _fire(session, page.url)
        assert [(t.text, t.type, t.link) for t in page.tags] == [("Nginx", "info", "https://nginx.org/en")]

    def test_implied_technologies_are_tagged(self, session):
        self._agent(session)
        body = b'<meta name="generator" content="WordPress 6.5">'
        page = _page_with_body(session, "http://example.com/", body)
        _fire(session, page.url)
        assert page.tag_names() == ["WordPress", "PHP"]

    def test_headers_only_when_body_missing(self, session):
        self._agent(session)
        page = _page_with_body(session, "http://example.com/", None, [("Server", "nginx")])
        _fire(session, page.url)
        assert page.tag_names() == ["Nginx"]

    def test_header_and_html_match_yield_one_tag(self, session):
        rule = {"name": "Varnish", "website": "https://varnish-cache.org",
                "headers": {"Via": "varnish"}, "html": "varnish-cache"}
        session.register(URLTechnologyFingerprinter(FingerprintEngine([compile_rule(rule)])))
        page = _page_with_body(session, "http://example.com/", b"<p>served by varnish-cache</p>",
                               [("Via", "1.1 varnish (Varnish/6.0)")])
        _fire(session, page.url)
        assert page.tag_names() == ["Varnish"]

    def test_loads_ruleset_from_config(self, session, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(self.RULES))
        session.config.fingerprints_path = str(path)
        agent = URLTechnologyFingerprinter()
        session.register(agent)
        assert len(agent.engine) == 3

    def test_broken_ruleset_is_fatal(self, session, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("[{")
        session.config.fingerprints_path = str(path)
        with pytest.raises(RulesetError):
            session.register(URLTechnologyFingerprinter())


class TestTakeoverDetector:
    def test_vulnerable_s3_bucket(self, session):
        session.register(URLTakeoverDetector())
        page = _page_with_body(session, "http://assets.example.com/", b"<Error><Code>NoSuchBucket</Code></Error>")
        with patch.object(takeover_detector, "lookup_addrs_and_cname",
                          return_value=(["52.216.1.1"], "assets.example.com.s3.amazonaws.com.")):
            _fire(session, page.url)
        tags = {t.text: t for t in page.tags}
        assert tags["Amazon S3"].type == "info"
        assert tags[TAKEOVER_TAG].type == "danger"
        assert tags[TAKEOVER_TAG].link.startswith("https://docs.aws.amazon.com/")

    def test_identified_but_not_vulnerable(self, session):
        session.register(URLTakeoverDetector())
        page = _page_with_body(session, "http://assets.example.com/", b"<html>ok</html>")
        with patch.object(takeover_detector, "lookup_addrs_and_cname",
                          return_value=([], "bucket.s3.amazonaws.com.")):
            _fire(session, page.url)
        assert page.tag_names() == ["Amazon S3"]

    def test_ip_host_is_skipped(self, session):
        session.register(URLTakeoverDetector())
        page = _page_with_body(session, "http://185.199.108.153/", b"There isn't a GitHub Pages site here.")
        with patch.object(takeover_detector, "lookup_addrs_and_cname") as lookup:
            _fire(session, page.url)
        lookup.assert_not_called()
        assert page.tags == []

    def test_dns_failure_adds_nothing(self, session):
        session.register(URLTakeoverDetector())
        page = _page_with_body(session, "http://gone.example.com/", b"NoSuchBucket")
        with patch.object(takeover_detector, "lookup_addrs_and_cname",
                          side_effect=dns.exception.Timeout()):
            _fire(session, page.url)
        assert page.tags == []

    def test_missing_body_adds_nothing(self, session):
        session.register(URLTakeoverDetector())
        page = _page_with_body(session, "http://assets.example.com/")
        with patch.object(takeover_detector, "lookup_addrs_and_cname",
                          return_value=([], "bucket.s3.amazonaws.com.")):
            _fire(session, page.url)
        assert page.tags == []


class TestStagesRespectLimiter:
    """Body reads, parsing and matching wait for a free limiter slot."""

    @pytest.fixture
    def busy_session(self, config):
        config.threads = 1
        session = Session(config).start()
        gate = threading.Event()
        session.limiter.spawn(gate.wait)
        yield session, gate
        gate.set()
        session.close()

    def _check_blocked_then_done(self, session, gate, page, observe):
        session.publish(Topic.URL_RESPONSIVE, page.url)
        time.sleep(0.3)
        assert session.limiter.in_flight == 1
        assert observe(page) == observe(None)
        gate.set()
        assert session.wait(timeout=10)
        assert session.limiter.peak_in_flight == 1
        return observe(page)

    def test_title_extractor(self, busy_session):
        session, gate = busy_session
        session.register(URLPageTitleExtractor())
        page = _page_with_body(session, "http://example.com/", b"<title>Hi</title>")
        title = self._check_blocked_then_done(
            session, gate, page, lambda p: p.page_title if p else "")
        assert title == "Hi"

    def test_technology_fingerprinter(self, busy_session):
        session, gate = busy_session
        rule = {"name": "Nginx", "website": "https://nginx.org/en", "headers": {"Server": "nginx"}}
        session.register(URLTechnologyFingerprinter(FingerprintEngine([compile_rule(rule)])))
        page = _page_with_body(session, "http://example.com/", b"<p>hi</p>", [("Server", "nginx")])
        tags = self._check_blocked_then_done(
            session, gate, page, lambda p: p.tag_names() if p else [])
        assert tags == ["Nginx"]
