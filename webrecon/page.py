"""Target record model: one ``Page`` per unique URL."""

from __future__ import annotations

import hashlib
import re
import threading
import uuid
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Tuple
from urllib.parse import urlsplit

from .utils.domain import is_ip_literal

TAG_TYPES = ('info', 'warning', 'danger')
_UNSAFE_CHARS = re.compile(r'[^a-z0-9_\-]')

# header name -> classifier(value) returning (increases, decreases)
_SECURITY_HEADERS = {
    'content-security-policy': lambda v: (True, False),
    'content-security-policy-report-only': lambda v: (True, False),
    'strict-transport-security': lambda v: (True, False),
    'x-frame-options': lambda v: (True, False),
    'referrer-policy': lambda v: (True, False),
    'public-key-pins': lambda v: (True, False),
    'x-content-type-options': lambda v: (v.strip().lower() == 'nosniff', False),
    'x-xss-protection': lambda v: (v.strip().startswith('1'), v.strip().startswith('0')),
    'x-permitted-cross-domain-policies': lambda v: (
        v.strip().lower() in ('master-only', 'none'), v.strip().lower() == 'all'),
    'access-control-allow-origin': lambda v: (False, v.strip() == '*'),
    'server': lambda v: (False, any(ch.isdigit() for ch in v)),
    'x-powered-by': lambda v: (False, True),
    'x-aspnet-version': lambda v: (False, True),
    'x-aspnetmvc-version': lambda v: (False, True),
}


@dataclass
class Header:
    name: str
    value: str
    decreases_security: bool = False
    increases_security: bool = False

    def set_security_flags(self) -> None:
        classify = _SECURITY_HEADERS.get(self.name.lower())
        if classify is None:
            return
        self.increases_security, self.decreases_security = classify(self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'value': self.value,
            'decreasesSecurity': self.decreases_security,
            'increasesSecurity': self.increases_security,
        }


@dataclass(frozen=True)
class Tag:
    text: str
    type: str = 'info'
    link: str = ''

    def __post_init__(self):
        if self.type not in TAG_TYPES:
            raise ValueError(f'unknown tag type {self.type!r}')


def base_filename(url: str) -> str:
    """Deterministic, filesystem safe artifact name for ``url``.

    ``<scheme>__<host>__<first 16 hex chars of sha1(path + fragment)>``, with
    ``:`` in the host replaced by ``__`` and dots by ``_``, lower-cased.
    """
    try:
        u = urlsplit(url)
    except ValueError:
        return ''
    digest = hashlib.sha1((u.path + u.fragment).encode('utf-8')).hexdigest()[:16]
    host = u.netloc.replace(':', '__', 1).replace('.', '_')
    return _UNSAFE_CHARS.sub('_', f'{u.scheme}__{host}__{digest}'.lower())


class Page:
    def __init__(self, url: str):
        parsed = urlsplit(url)
        if not parsed.scheme or not parsed.hostname:
            raise ValueError(f'not an absolute URL: {url!r}')
        self._lock = threading.Lock()
        self.url = url
        self.uuid = str(uuid.uuid4())
        self.hostname = parsed.hostname
        self.addrs: List[str] = []
        self.status = ''
        self.page_title = ''
        self.headers_path = ''
        self.body_path = ''
        self.screenshot_path = ''
        self.has_screenshot = False
        self.headers: List[Header] = []
        self.tags: List[Tag] = []
        self.notes: List[str] = []

    def is_ip_host(self) -> bool:
        return is_ip_literal(self.hostname)

    def base_filename(self) -> str:
        return base_filename(self.url)

    def add_header(self, name: str, value: str) -> Header:
        header = Header(name, value)
        header.set_security_flags()
        with self._lock:
            self.headers.append(header)
        return header

    def add_tag(self, text: str, tag_type: str = 'info', link: str = '') -> bool:
        """Append a tag; returns False when an equal tag is already present."""
        tag = Tag(text, tag_type, link)
        with self._lock:
            if any(t.text == tag.text and t.type == tag.type for t in self.tags):
                return False
            self.tags.append(tag)
        return True

    def add_note(self, text: str) -> None:
        with self._lock:
            self.notes.append(text)

    def has_tag(self, text: str) -> bool:
        with self._lock:
            return any(t.text == text for t in self.tags)

    def tag_names(self) -> List[str]:
        with self._lock:
            return [t.text for t in self.tags]

    def header_pairs(self) -> List[Tuple[str, str]]:
        with self._lock:
            return [(h.name, h.value) for h in self.headers]

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            headers = [h.to_dict() for h in self.headers]
            tags = [asdict(t) for t in self.tags]
            notes = list(self.notes)
            addrs = list(self.addrs)
        return {
            'uuid': self.uuid,
            'url': self.url,
            'hostname': self.hostname,
            'addrs': addrs,
            'status': self.status,
            'pageTitle': self.page_title,
            'headersPath': self.headers_path,
            'bodyPath': self.body_path,
            'screenshotPath': self.screenshot_path,
            'hasScreenshot': self.has_screenshot,
            'headers': headers,
            'tags': tags,
            'notes': notes,
        }

    def __repr__(self) -> str:
        return f'<Page {self.url} status={self.status!r} tags={len(self.tags)}>'
