import logging
import unittest, pathlib, sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from webrecon.exceptions import (
    BrowserNotFoundError,
    ConfigurationError,
    InvalidPortSpecError,
    OutputDirectoryError,
    RulesetError,
    ScanError,
    ScreenshotError,
    ScreenshotTimeoutError,
    WebReconException,
)
from webrecon.logging_utils import (
    configure_logging,
    get_suppressed_snapshot,
    log_suppressed,
    reset_suppressed_state,
)


class TestExceptions(unittest.TestCase):
    def test_hierarchy(self):
        self.assertTrue(issubclass(InvalidPortSpecError, ConfigurationError))
        self.assertTrue(issubclass(OutputDirectoryError, ConfigurationError))
        self.assertTrue(issubclass(ScreenshotTimeoutError, ScreenshotError))
        for cls in (ConfigurationError, RulesetError, BrowserNotFoundError, ScanError):
            self.assertTrue(issubclass(cls, WebReconException))

    def test_fatality(self):
        self.assertTrue(OutputDirectoryError('/x', 'missing').fatal)
        self.assertTrue(BrowserNotFoundError().fatal)
        self.assertFalse(ScreenshotError('http://a/', 'boom').fatal)

    def test_to_dict(self):
        err = OutputDirectoryError('/nope', 'output destination does not exist')
        data = err.to_dict()
        self.assertTrue(data['error'])
        self.assertEqual(data['error_code'], 'INVALID_OUTPUT_DIRECTORY')
        self.assertEqual(data['details'], {'setting': 'out_dir', 'path': '/nope'})
        self.assertIn('/nope', data['message'])

    def test_to_dict_without_details(self):
        data = WebReconException('plain').to_dict()
        self.assertNotIn('details', data)

    def test_screenshot_timeout_details(self):
        err = ScreenshotTimeoutError('http://a/', 30.0)
        self.assertEqual(err.error_code, 'SCREENSHOT_TIMEOUT')
        self.assertEqual(err.details['timeout_seconds'], 30.0)
        self.assertEqual(err.details['url'], 'http://a/')


class TestLogSuppressed(unittest.TestCase):
    def setUp(self):
        reset_suppressed_state()
        self.logger = logging.getLogger('webrecon.test.suppressed')

    def test_samples_then_throttles(self):
        with self.assertLogs(self.logger, level='DEBUG') as cm:
            for _ in range(8):
                log_suppressed(self.logger, OSError('refused'), 'port closed', sample=3, cooldown=3600)
        self.assertEqual(len(cm.output), 3)
        snap = get_suppressed_snapshot()
        key = f'{self.logger.name}:port closed:{logging.DEBUG}'
        self.assertEqual(snap[key]['count'], 8)

    def test_contexts_are_independent(self):
        log_suppressed(self.logger, OSError('a'), 'one')
        count = log_suppressed(self.logger, OSError('b'), 'two')
        self.assertEqual(count, 1)

    def test_reset(self):
        log_suppressed(self.logger, OSError('a'), 'ctx')
        reset_suppressed_state()
        self.assertEqual(get_suppressed_snapshot(), {})


class TestConfigureLogging(unittest.TestCase):
    def test_level_and_file_handler(self):
        import tempfile, os
        root = logging.getLogger()
        before = list(root.handlers)
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'run.log')
            try:
                level = configure_logging('debug', path)
                self.assertEqual(level, logging.DEBUG)
                self.assertEqual(logging.getLogger('urllib3').level, logging.WARNING)
                added = [h for h in root.handlers if h not in before]
                self.assertTrue(any(getattr(h, 'baseFilename', '') == path for h in added))
            finally:
                for h in root.handlers:
                    if h not in before:
                        root.removeHandler(h)
                        h.close()
                root.setLevel(logging.WARNING)


if __name__ == '__main__':
    unittest.main()
