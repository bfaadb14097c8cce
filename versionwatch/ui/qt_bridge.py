"""Qt completion dispatcher, runs query callbacks on the GUI thread.

Import PyQt6 only when the dispatcher is actually used (lazy import to
keep the rest of versionwatch free of any Qt dependency).
"""

import logging

logger = logging.getLogger(__name__)


def _get_dispatcher_class():
    """Lazy import to avoid PyQt6 at module level."""
    from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

    class QtDispatcher(QObject):
        """Create it on the GUI thread and pass it to QueryOrchestrator.

        dispatch() may be called from any thread; the signal crosses to the
        thread this object lives in through Qt's queued connection.
        """

        _callback_posted = pyqtSignal(object)

        def __init__(self, parent=None):
            super().__init__(parent)
            self._callback_posted.connect(self._run_callback)

        def dispatch(self, fn):
            self._callback_posted.emit(fn)

        @pyqtSlot(object)
        def _run_callback(self, fn):
            try:
                fn()
            except Exception as e:
                # An exception escaping a slot aborts PyQt6 applications
                logger.error("Version query callback failed: %s", e)

    return QtDispatcher


# Module-level accessor
_QtDispatcherClass = None


def get_qt_dispatcher_class():
    """Get the QtDispatcher class (lazy-imported to avoid PyQt6 at import time)."""
    global _QtDispatcherClass
    if _QtDispatcherClass is None:
        _QtDispatcherClass = _get_dispatcher_class()
    return _QtDispatcherClass
