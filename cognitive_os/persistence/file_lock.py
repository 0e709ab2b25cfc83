import fcntl
import os
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def exclusive_lock(lock_path: str) -> Iterator[None]:
    """
    Advisory inter-process lock held for the duration of the block.
    Only cooperating writers that take the same lock are serialized.
    """
    os.makedirs(os.path.dirname(lock_path) or ".", exist_ok=True)
    with open(lock_path, 'a') as lock_file:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
