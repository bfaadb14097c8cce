"""Completion dispatchers: where query_server() callbacks run.

A dispatcher only needs a dispatch(fn) method. The orchestrator calls it
from its worker thread; the dispatcher decides which context fn runs on.
The Qt flavour lives in versionwatch.ui.qt_bridge so this module stays
free of any GUI dependency.
"""

import queue


class QueueDispatcher:
    """Queues callbacks until the host's main loop calls run_pending()."""

    def __init__(self):
        self._pending: queue.SimpleQueue = queue.SimpleQueue()

    def dispatch(self, fn):
        self._pending.put(fn)

    def run_pending(self) -> int:
        """Run every queued callback on the calling thread. Returns the count."""
        ran = 0
        while True:
            try:
                fn = self._pending.get_nowait()
            except queue.Empty:
                return ran
            fn()
            ran += 1

    def wait_and_run(self, timeout: float | None = None) -> bool:
        """Block for one callback, run it. False if none arrived in time."""
        try:
            fn = self._pending.get(timeout=timeout)
        except queue.Empty:
            return False
        fn()
        return True


class ImmediateDispatcher:
    """Runs callbacks inline on the worker thread (tests, headless scripts)."""

    def dispatch(self, fn):
        fn()
