import os
import time
import signal
import logging
import threading
import subprocess
from collections import namedtuple

from livecollab.errors import InfrastructureError

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == 'nt'
KILL_GRACE_SECONDS = 5
POLL_SECONDS = 0.05
READ_CHUNK = 64 * 1024

CommandResult = namedtuple('CommandResult', ['returncode', 'stdout', 'stderr', 'timed_out', 'truncated'])


def _kill_tree(proc):
    """Kill the process and everything it spawned."""
    try:
        if IS_WINDOWS:
            proc.kill()
        else:
            # the child leads its own session, so its pgid is its pid
            os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


class _PipeCollector(threading.Thread):
    """Drain one pipe, keeping at most ``limit`` bytes of it."""

    def __init__(self, pipe, limit, overflow):
        super().__init__(daemon=True)
        self.pipe = pipe
        self.limit = limit
        self.overflow = overflow
        self.chunks = []
        self.size = 0

    def run(self):
        for chunk in iter(lambda: self.pipe.read1(READ_CHUNK), b''):
            room = self.limit - self.size
            if room > 0:
                kept = chunk[:room]
                self.chunks.append(kept)
                self.size += len(kept)
            if len(chunk) > room:
                # keep draining so the writer is never stuck on a full pipe
                self.overflow.set()

    def text(self):
        data = b''.join(self.chunks).decode('utf-8', errors='replace')
        return data.replace('\r\n', '\n')


def run_command(argv, cwd, timeout, max_output=1024 * 100):
    """Run one compile or run step, bounded by ``timeout`` seconds.

    At most ``max_output`` bytes of each stream are kept. A process that
    writes more is killed early and reported with ``truncated=True``. On
    timeout the whole process group is killed and whatever output was
    captured up to that point is returned with ``timed_out=True``. A binary
    that cannot be spawned at all raises InfrastructureError.
    """
    logger.debug(f"Running {argv!r} in {cwd} (timeout: {timeout}s)")
    try:
        proc = subprocess.Popen(
            argv,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=not IS_WINDOWS,
        )
    except OSError as e:
        logger.error(f"Cannot spawn {argv[0]}: {e}")
        raise InfrastructureError(f"cannot start {argv[0]}: {e}") from e

    overflow = threading.Event()
    collectors = [
        _PipeCollector(proc.stdout, max_output, overflow),
        _PipeCollector(proc.stderr, max_output, overflow),
    ]
    for collector in collectors:
        collector.start()

    timed_out = False
    deadline = time.monotonic() + timeout
    while proc.poll() is None:
        if overflow.is_set():
            logger.warning(f"{argv[0]} exceeded {max_output} bytes of output, killing process group {proc.pid}")
            _kill_tree(proc)
            break
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.warning(f"{argv[0]} timed out after {timeout}s, killing process group {proc.pid}")
            timed_out = True
            _kill_tree(proc)
            break
        overflow.wait(min(POLL_SECONDS, remaining))
    proc.wait()

    drain_deadline = time.monotonic() + KILL_GRACE_SECONDS
    for collector in collectors:
        collector.join(max(0, drain_deadline - time.monotonic()))
        if collector.is_alive():
            # a descendant left the group and still holds the pipe
            logger.warning(f"Abandoning output of {argv[0]}: pipe still open after exit")
        else:
            collector.pipe.close()

    stdout, stderr = (collector.text() for collector in collectors)
    return CommandResult(proc.returncode, stdout, stderr, timed_out, overflow.is_set())
