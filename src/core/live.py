"""
Change notifications for live pages.

The server pushes Server-Sent Events when the data files behind a
tournament change; browsers that lose the stream fall back to polling
every ``POLL_FALLBACK_SECONDS``.
"""
import os
import time
from typing import Callable, Dict, Iterable, Iterator

CHECK_INTERVAL_SECONDS = 3
HEARTBEAT_SECONDS = 15
POLL_FALLBACK_SECONDS = 5


def data_file_mtimes(paths: Iterable[str]) -> Dict[str, float]:
    """Map each path to its modification time, or 0.0 if it does not exist."""
    return {path: os.path.getmtime(path) if os.path.exists(path) else 0.0 for path in paths}


def watch_data_files(paths: Iterable[str], interval: float = CHECK_INTERVAL_SECONDS,
                     heartbeat: float = HEARTBEAT_SECONDS,
                     sleep: Callable[[float], None] = time.sleep) -> Iterator[str]:
    """
    Yield SSE messages for changes to ``paths``.

    An immediate 'connected' event lets the client show its live status
    right away; afterwards an 'update' event follows every detected mtime
    change and a comment line keeps idle connections open.
    """
    paths = list(paths)
    yield "event: connected\ndata: ok\n\n"

    last_mtimes = data_file_mtimes(paths)
    since_heartbeat = 0
    while True:
        sleep(interval)
        since_heartbeat += interval

        current_mtimes = data_file_mtimes(paths)
        if current_mtimes != last_mtimes:
            last_mtimes = current_mtimes
            yield f"event: update\ndata: {time.time()}\n\n"

        if since_heartbeat >= heartbeat:
            since_heartbeat = 0
            yield ": heartbeat\n\n"
