"""webrecon: port scan, HTTP probe and page analysis for lists of hosts."""

__version__ = '1.0.0'

from .config import Config  # noqa: E402
from .logging_utils import configure_logging  # noqa: E402


def create_session(config=None):
    """Configure logging from ``config`` and return a ready session."""
    from .runner import build_session

    config = config or Config.from_env()
    configure_logging(config.log_level, config.log_file or None)
    return build_session(config)


__all__ = ['__version__', 'Config', 'configure_logging', 'create_session']
