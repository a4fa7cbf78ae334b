"""Pipeline agents. Each one subscribes handlers to a session's dispatcher."""

from .base import Agent
from .hostname_resolver import URLHostnameResolver
from .port_scanner import TCPPortScanner
from .screenshotter import URLScreenshotter
from .takeover_detector import URLTakeoverDetector
from .technology_fingerprinter import URLTechnologyFingerprinter
from .title_extractor import URLPageTitleExtractor
from .url_publisher import URLPublisher
from .url_requester import URLRequester

__all__ = [
    "Agent",
    "TCPPortScanner",
    "URLPublisher",
    "URLRequester",
    "URLHostnameResolver",
    "URLPageTitleExtractor",
    "URLScreenshotter",
    "URLTechnologyFingerprinter",
    "URLTakeoverDetector",
]
