import sys
import pathlib

import pytest

# Ensure project root is on sys.path so 'import webrecon' works when pytest runs
# from different working directories or when running individual tests.
_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from webrecon.config import Config
from webrecon.fingerprint import clear_cache
from webrecon.logging_utils import reset_suppressed_state
from webrecon.session import Session


@pytest.fixture
def config(tmp_path):
    return Config(threads=4, ports='80', out_dir=str(tmp_path), screenshots=False)


@pytest.fixture
def session(config):
    s = Session(config).start()
    yield s
    s.close()


@pytest.fixture(autouse=True)
def _reset_module_state():
    reset_suppressed_state()
    clear_cache()
    yield
