"""Wappalyzer-style technology fingerprinting.

Rules are read once from a JSON array and compiled up front; a pattern that
does not compile is dropped without discarding the rest of its rule. Matching
only looks at content already captured for a page (response headers and the
stored body), it never touches the network.
"""

from __future__ import annotations

import json
import logging
import pathlib
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .exceptions import RulesetError

logger = logging.getLogger('webrecon.fingerprint')

_CACHE: Dict[str, 'FingerprintEngine'] = {}
_CACHE_LOCK = threading.Lock()

# Wappalyzer appends tags such as "\;version:\1" or "\;confidence:50" to patterns
_TAG_SUFFIX = re.compile(r'\\;.*$')


@dataclass(frozen=True, eq=False)
class FingerprintRule:
    name: str
    website: str = ''
    categories: Tuple[str, ...] = ()
    implies: Tuple[str, ...] = ()
    headers: Dict[str, List[re.Pattern]] = field(default_factory=dict)
    html: Tuple[re.Pattern, ...] = ()
    scripts: Tuple[re.Pattern, ...] = ()
    meta: Dict[str, List[re.Pattern]] = field(default_factory=dict)


@dataclass(frozen=True)
class Detection:
    rule: FingerprintRule
    source: str               # headers, html, script, meta or implied
    implied_by: Optional[str] = None


def _compile(v: Any) -> List[re.Pattern]:
    out: List[re.Pattern] = []
    if v is None:
        return out
    items = v if isinstance(v, list) else [v]
    for s in items:
        if not isinstance(s, str):
            continue
        s = _TAG_SUFFIX.sub('', s)
        try:
            out.append(re.compile(s, re.I))
        except re.error:
            logger.debug('skipping invalid pattern %r', s)
    return out


def _as_list(raw: Any) -> List[Any]:
    if raw is None:
        return []
    return raw if isinstance(raw, list) else [raw]


def _implied_names(raw: Any) -> Tuple[str, ...]:
    names: List[str] = []
    for item in _as_list(raw):
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, dict) and isinstance(item.get('name'), str):
            names.append(item['name'])
    return tuple(names)


def _pattern_map(spec: Dict[str, Any], key: str) -> Dict[str, List[re.Pattern]]:
    raw = spec.get(key) or {}
    if not isinstance(raw, dict):
        logger.debug('skipping malformed %s of fingerprint %s', key, spec.get('name'))
        return {}
    out: Dict[str, List[re.Pattern]] = {}
    for name, patt in raw.items():
        compiled = _compile(patt)
        if compiled and isinstance(name, str):
            out[name.lower()] = compiled
    return out


def compile_rule(spec: Dict[str, Any]) -> FingerprintRule:
    headers = _pattern_map(spec, 'headers')
    meta = _pattern_map(spec, 'meta')
    return FingerprintRule(
        name=spec['name'],
        website=spec.get('website') or '',
        categories=tuple(c for c in _as_list(spec.get('categories')) if isinstance(c, str)),
        implies=_implied_names(spec.get('implies')),
        headers=headers,
        html=tuple(_compile(spec.get('html'))),
        scripts=tuple(_compile(spec.get('script') or spec.get('scripts'))),
        meta=meta,
    )


def load_rules(path: str) -> List[FingerprintRule]:
    """Read and compile a ruleset. Raises RulesetError on unusable input."""
    p = pathlib.Path(path)
    try:
        with p.open('r', encoding='utf-8') as f:
            raw = json.load(f)
    except OSError as e:
        raise RulesetError(path, str(e)) from e
    except json.JSONDecodeError as e:
        raise RulesetError(path, f'invalid JSON ({e})') from e
    if not isinstance(raw, list):
        raise RulesetError(path, 'expected a JSON array of fingerprints')
    rules: List[FingerprintRule] = []
    for spec in raw:
        if not isinstance(spec, dict) or not isinstance(spec.get('name'), str):
            continue
        rules.append(compile_rule(spec))
    logger.debug('loaded %d fingerprints from %s', len(rules), path)
    return rules


def _extract_assets(html: str) -> Tuple[List[str], Dict[str, List[str]]]:
    scripts: List[str] = []
    meta_map: Dict[str, List[str]] = {}
    for m in re.finditer(r'<script[^>]+src=["\']([^"\'>]+)["\']', html, re.I):
        u = m.group(1)
        if 1 <= len(u) <= 500:
            scripts.append(u)
    for tag in re.finditer(r'<meta\b[^>]*>', html, re.I):
        text = tag.group(0)
        name = re.search(r'\b(?:name|property)\s*=\s*["\']([^"\'>]+)["\']', text, re.I)
        if not name:
            continue
        content = re.search(r'\bcontent\s*=\s*["\']([^"\'>]*)["\']', text, re.I)
        meta_map.setdefault(name.group(1).strip().lower(), []).append(
            (content.group(1) if content else '').strip())
    return scripts, meta_map


def _match_any(regexes: Sequence[re.Pattern], text: str) -> re.Match | None:
    for rx in regexes:
        m = rx.search(text)
        if m:
            return m
    return None


def match_rule(rule: FingerprintRule, headers: Dict[str, List[str]], html: str,
               scripts: Sequence[str], meta_map: Dict[str, List[str]]) -> Optional[str]:
    """Return the first evidence source that matches ``rule`` or None."""
    for hname, rxs in rule.headers.items():
        for value in headers.get(hname, ()):
            if _match_any(rxs, value):
                return 'headers'
    if html and _match_any(rule.html, html):
        return 'html'
    if rule.scripts:
        for src in scripts:
            if _match_any(rule.scripts, src):
                return 'script'
    for mname, rxs in rule.meta.items():
        for content in meta_map.get(mname, ()):
            if _match_any(rxs, content):
                return 'meta'
    return None


class FingerprintEngine:
    def __init__(self, rules: Sequence[FingerprintRule]):
        self.rules: Tuple[FingerprintRule, ...] = tuple(rules)
        self._by_name: Dict[str, FingerprintRule] = {}
        for rule in self.rules:
            self._by_name.setdefault(rule.name, rule)

    @classmethod
    def from_file(cls, path: str) -> 'FingerprintEngine':
        key = str(pathlib.Path(path).resolve())
        with _CACHE_LOCK:
            cached = _CACHE.get(key)
            if cached is not None:
                return cached
            engine = cls(load_rules(path))
            _CACHE[key] = engine
            return engine

    def get(self, name: str) -> Optional[FingerprintRule]:
        return self._by_name.get(name)

    def __len__(self) -> int:
        return len(self.rules)

    def detect(self, headers: Sequence[Tuple[str, str]], html: str = '') -> List[Detection]:
        """Direct matches in ruleset order, each followed by what it implies.

        Names are unique in the result. Implied rules are taken on trust; their
        own patterns are not evaluated.
        """
        header_map: Dict[str, List[str]] = {}
        for name, value in headers:
            header_map.setdefault(name.lower(), []).append(value)
        scripts, meta_map = _extract_assets(html or '')

        found: List[Detection] = []
        seen: set[str] = set()
        for rule in self.rules:
            if rule.name in seen:
                continue
            try:
                source = match_rule(rule, header_map, html or '', scripts, meta_map)
            except Exception:
                logger.debug('fingerprint %s failed to evaluate', rule.name, exc_info=True)
                continue
            if source is None:
                continue
            seen.add(rule.name)
            found.append(Detection(rule, source))
            for implied_name in rule.implies:
                if implied_name in seen:
                    continue
                implied = self._by_name.get(implied_name)
                if implied is None:
                    continue
                seen.add(implied_name)
                found.append(Detection(implied, 'implied', implied_by=rule.name))
        return found


def clear_cache() -> None:
    with _CACHE_LOCK:
        _CACHE.clear()
