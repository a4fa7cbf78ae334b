"""Command line entry point.

Reads targets (hostnames, IPs or URLs), one per line, from stdin or a file
and runs the full pipeline over them:

  cat hosts.txt | webrecon --ports large --threads 16 --out ./recon
Every flag falls back to its WEBRECON_* environment variable.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import Config
from .exceptions import WebReconException
from .logging_utils import configure_logging
from .metrics import write_metrics
from .runner import build_session, parse_targets, run

logger = logging.getLogger('webrecon.cli')


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='webrecon', description='Port scan and fingerprint web services')
    ap.add_argument('file', nargs='?', default='-', help='Target list, one per line ("-" for stdin)')
    ap.add_argument('--threads', type=int, help='Concurrent units of work (default: number of CPUs)')
    ap.add_argument('--ports', help='Port list name (small, medium, large, xlarge) or comma-separated ports')
    ap.add_argument('--scan-timeout', type=int, help='TCP connect timeout in milliseconds')
    ap.add_argument('--http-timeout', type=int, help='HTTP request timeout in milliseconds')
    ap.add_argument('--screenshot-timeout', type=int, help='Screenshot timeout in milliseconds')
    ap.add_argument('--chrome-path', help='Full path to a Chrome/Chromium executable')
    ap.add_argument('--proxy', help='Proxy for HTTP requests and screenshots')
    ap.add_argument('--resolution', help='Screenshot window size, e.g. 1440,900')
    ap.add_argument('--out', dest='out_dir', help='Directory for artifacts and the session file')
    ap.add_argument('--fingerprints', dest='fingerprints_path', help='Technology fingerprint ruleset (JSON)')
    ap.add_argument('--no-body', dest='save_body', action='store_false', default=None,
                    help='Do not store response bodies')
    ap.add_argument('--no-screenshots', dest='screenshots', action='store_false', default=None,
                    help='Skip the screenshot stage')
    ap.add_argument('--metrics-file', help='Write Prometheus text metrics to this path after the run')
    ap.add_argument('--log-level', help='DEBUG, INFO, WARNING or ERROR')
    ap.add_argument('--log-file', help='Also log to this file (rotated)')
    ap.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return ap


def read_targets(path: str) -> List[str]:
    if path == '-':
        return parse_targets(sys.stdin)
    with open(path, 'r', encoding='utf-8') as fh:
        return parse_targets(fh)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = Config.from_env()
        overrides = {k: v for k, v in vars(args).items() if k != 'file'}
        if overrides.get('log_level'):
            overrides['log_level'] = overrides['log_level'].upper()
        config = config.override(**overrides)
    except WebReconException as e:
        configure_logging('INFO')
        logger.critical('%s', e.message)
        return 1

    configure_logging(config.log_level, config.log_file or None)
    logger.info('webrecon v%s started', __version__)

    try:
        targets = read_targets(args.file)
    except OSError as e:
        logger.critical('Unable to read targets from %s: %s', args.file, e)
        return 1
    if not targets:
        logger.critical('No targets found in input')
        return 1

    try:
        session = build_session(config)
    except WebReconException as e:
        logger.critical('%s', e.message)
        logger.debug('error detail %s', e.to_dict())
        return 1

    run(session, targets)
    stats = session.stats
    logger.info('Time: %.2fs', stats.duration)
    logger.info('Ports open=%d closed=%d | requests ok=%d failed=%d | screenshots ok=%d failed=%d',
                stats.port_open, stats.port_closed, stats.request_successful, stats.request_failed,
                stats.screenshot_successful, stats.screenshot_failed)
    if config.metrics_file:
        try:
            write_metrics(stats, config.metrics_file)
        except OSError as e:
            logger.error('Failed writing metrics to %s: %s', config.metrics_file, e)
    return 0


if __name__ == '__main__':
    sys.exit(main())
