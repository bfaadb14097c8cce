import threading
import time

import pytest

pytest.importorskip('PyQt6.QtCore')

from PyQt6.QtCore import QCoreApplication  # noqa: E402

from versionwatch.ui.qt_bridge import get_qt_dispatcher_class  # noqa: E402


@pytest.fixture(scope='module')
def app():
    return QCoreApplication.instance() or QCoreApplication([])


def test_callback_runs_on_gui_thread(app):
    dispatcher = get_qt_dispatcher_class()()
    ran_on = []

    worker = threading.Thread(
        target=dispatcher.dispatch,
        args=(lambda: ran_on.append(threading.current_thread()),),
    )
    worker.start()
    worker.join()

    deadline = time.monotonic() + 5
    while not ran_on and time.monotonic() < deadline:
        app.processEvents()
    assert ran_on == [threading.main_thread()]


def test_accessor_caches_class():
    assert get_qt_dispatcher_class() is get_qt_dispatcher_class()
