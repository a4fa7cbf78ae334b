"""Prometheus exposition of run statistics.

A run is a one-shot batch, so metrics are collected into a private registry
after the run has finished and written out in the text exposition format
instead of being served over HTTP.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from .stats import RunStats


def build_registry(stats: RunStats, registry: Optional[CollectorRegistry] = None) -> CollectorRegistry:
    registry = registry or CollectorRegistry()
    snap = stats.snapshot()

    ports = Counter('webrecon_ports_total', 'TCP ports probed, by result', ['result'], registry=registry)
    ports.labels(result='open').inc(snap['port_open'])
    ports.labels(result='closed').inc(snap['port_closed'])

    requests_total = Counter('webrecon_requests_total', 'HTTP requests made, by result',
                             ['result'], registry=registry)
    requests_total.labels(result='successful').inc(snap['request_successful'])
    requests_total.labels(result='failed').inc(snap['request_failed'])

    responses = Counter('webrecon_responses_total', 'HTTP responses, by status class',
                        ['code_class'], registry=registry)
    for cls in ('2xx', '3xx', '4xx', '5xx'):
        responses.labels(code_class=cls).inc(snap[f'response_code_{cls}'])

    shots = Counter('webrecon_screenshots_total', 'Screenshot attempts, by result',
                    ['result'], registry=registry)
    shots.labels(result='successful').inc(snap['screenshot_successful'])
    shots.labels(result='failed').inc(snap['screenshot_failed'])

    duration = Gauge('webrecon_run_duration_seconds', 'Wall-clock duration of the run', registry=registry)
    duration.set(stats.duration)
    return registry


def export_run_metrics(stats: RunStats) -> bytes:
    return generate_latest(build_registry(stats))


def write_metrics(stats: RunStats, path: str) -> str:
    with open(path, 'wb') as fh:
        fh.write(export_run_metrics(stats))
    return path
