import logging
import threading
import time
from typing import Dict, Optional, Tuple, Union

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

_SuppressionKey = Tuple[str, str, int]
_SuppressionState = Dict[str, Union[float, int]]

_SUPPRESSION_LOCK = threading.Lock()
_SUPPRESSION_STATE: Dict[_SuppressionKey, _SuppressionState] = {}


def configure_logging(level_name: str = 'INFO', log_file: Optional[str] = None,
                      max_bytes: int = 5 * 1024 * 1024, backup_count: int = 5) -> int:
    """Initialise root logging for a run and return the effective level.

    A rotating file handler is attached when ``log_file`` is given.
    """
    level = getattr(logging, (level_name or 'INFO').upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    if log_file:
        try:
            from logging.handlers import RotatingFileHandler
            fh = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
            fh.setLevel(level)
            fh.setFormatter(logging.Formatter(LOG_FORMAT))
            logging.getLogger().addHandler(fh)
            logging.getLogger('webrecon').info(
                'RotatingFileHandler attached path=%s max_bytes=%d backups=%d',
                log_file, max_bytes, backup_count)
        except OSError:
            logging.getLogger('webrecon').warning('failed attaching RotatingFileHandler for %s', log_file)
    # requests/urllib3 are chatty at DEBUG and warn on every unverified TLS request
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    return level


def log_suppressed(
    logger: logging.Logger,
    exc: Exception,
    context: str,
    *,
    level: int = logging.DEBUG,
    sample: int = 5,
    cooldown: float = 120.0,
) -> int:
    """Emit a throttled log entry for repeated soft-failures.

    Parameters
    ----------
    logger: logging.Logger
        Target logger to write into.
    exc: Exception
        Exception instance that triggered the suppression log.
    context: str
        Human-readable identifier so we can aggregate per-failure site.
    level: int
        Logging level; defaults to ``DEBUG``.
    sample: int
        Emit the first ``sample`` occurrences before throttling kicks in.
    cooldown: float
        Minimum seconds between emissions once the initial sample budget is
        exhausted.

    Returns
    -------
    int
        Total number of times this ``context`` has requested logging (including
        suppressed writes).
    """
    now = time.time()
    key: _SuppressionKey = (logger.name, context, level)
    with _SUPPRESSION_LOCK:
        state = _SUPPRESSION_STATE.setdefault(key, {'count': 0, 'last_emit': 0.0})
        state['count'] = int(state['count']) + 1
        count = int(state['count'])
        last_emit = float(state.get('last_emit', 0.0))
        should_emit = count <= sample or (now - last_emit) >= cooldown
        if should_emit:
            state['last_emit'] = now
    if should_emit:
        logger.log(level, '%s err=%s (suppressed=%d)', context, exc, max(0, count - 1))
    return count


def get_suppressed_snapshot() -> Dict[str, _SuppressionState]:
    """Return a shallow copy of suppression counters."""
    with _SUPPRESSION_LOCK:
        snapshot: Dict[str, _SuppressionState] = {}
        for (logger_name, context, level), state in _SUPPRESSION_STATE.items():
            key = f'{logger_name}:{context}:{level}'
            snapshot[key] = {
                'count': int(state.get('count', 0)),
                'last_emit': float(state.get('last_emit', 0.0)),
            }
    return snapshot


def reset_suppressed_state() -> None:
    """Clear suppression counters. Useful for unit tests."""
    with _SUPPRESSION_LOCK:
        _SUPPRESSION_STATE.clear()
