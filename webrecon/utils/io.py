import os
import time


def is_file_saved(path: str, timeout: float, interval: float = 0.1) -> bool:
    """Poll until ``path`` exists or ``timeout`` seconds elapse."""
    deadline = time.monotonic() + timeout
    while not os.path.exists(path):
        if time.monotonic() >= deadline:
            return False
        time.sleep(interval)
    return True


def write_bytes(path: str, data: bytes) -> None:
    with open(path, 'wb') as fh:
        fh.write(data)
