"""Session assembly and the end-to-end run loop."""

from __future__ import annotations

import logging
from typing import Iterable, List

from .agents import (
    TCPPortScanner,
    URLHostnameResolver,
    URLPageTitleExtractor,
    URLPublisher,
    URLRequester,
    URLScreenshotter,
    URLTakeoverDetector,
    URLTechnologyFingerprinter,
)
from .config import Config
from .events import Topic
from .session import Session
from .utils.domain import extract_host, is_url

logger = logging.getLogger('webrecon.runner')


def default_agents(config: Config) -> List:
    agents = [
        TCPPortScanner(),
        URLPublisher(),
        URLRequester(),
        URLHostnameResolver(),
        URLPageTitleExtractor(),
    ]
    if config.screenshots:
        agents.append(URLScreenshotter())
    agents.extend([URLTechnologyFingerprinter(), URLTakeoverDetector()])
    return agents


def build_session(config: Config, agents: Iterable = None) -> Session:
    """Validate ``config`` and return a started session with agents registered.

    Raises a run-fatal WebReconException before any scanning happens when the
    configuration, output directory, ruleset or browser is unusable.
    """
    config.validate()
    session = Session(config).start()
    try:
        for agent in (default_agents(config) if agents is None else agents):
            session.register(agent)
    except Exception:
        session.close()
        raise
    return session


def parse_targets(lines: Iterable[str]) -> List[str]:
    """Non-empty, de-duplicated input lines in first-seen order."""
    seen = {}
    for line in lines:
        target = line.strip()
        if target and not target.startswith('#'):
            seen.setdefault(target, None)
    return list(seen)


def submit_targets(session: Session, targets: Iterable[str]) -> int:
    count = 0
    for target in targets:
        if is_url(target):
            session.publish(Topic.URL_CLASSIFIED, target)
        else:
            host = extract_host(target)
            if not host:
                logger.warning('skipping unusable target %r', target)
                continue
            session.publish(Topic.HOST_DISCOVERED, host)
        count += 1
    return count


def run(session: Session, targets: Iterable[str]) -> str:
    """Feed ``targets`` through the pipeline, drain it and write the summary.

    Returns the path of the session summary file.
    """
    try:
        count = submit_targets(session, targets)
        logger.info('Targets    : %d', count)
        logger.info('Ports      : %d', len(session.ports))
        session.wait()
        session.end()
        path = session.save_to_file(session.config.session_file)
        logger.info('Wrote session file to: %s', path)
        return path
    finally:
        session.close()
