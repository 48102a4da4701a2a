"""Local identifier generation."""

import threading
import time

_lock = threading.Lock()
_last_ms = 0


def new_local_id() -> str:
    """Return a timestamp-based id (milliseconds), strictly increasing per process."""
    global _last_ms
    with _lock:
        now_ms = time.time_ns() // 1_000_000
        _last_ms = now_ms if now_ms > _last_ms else _last_ms + 1
        return str(_last_ms)
