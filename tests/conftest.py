import socket
import threading

import pytest

from versionwatch.core.dispatch import ImmediateDispatcher
from versionwatch.core.errors import TransportError
from versionwatch.storage.store import MemoryStore


class StubFetcher:
    """Returns canned payloads (or raises) and records requested URLs."""

    def __init__(self, payload=b'{}', error=None):
        self.payload = payload
        self.error = error
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.payload


class InlineExecutor:
    """Executor stand-in that runs work immediately on the caller's thread."""

    def submit(self, fn, *args, **kwargs):
        fn(*args, **kwargs)

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def fetcher():
    return StubFetcher()


@pytest.fixture
def failing_fetcher():
    return StubFetcher(error=TransportError("connection refused"))


@pytest.fixture
def immediate():
    return ImmediateDispatcher()


@pytest.fixture
def garbage_server():
    """Raw socket server answering every connection with a non-HTTP status line."""
    listener = socket.socket()
    listener.bind(('127.0.0.1', 0))
    listener.listen(5)
    listener.settimeout(5)

    def serve():
        while True:
            try:
                conn, _ = listener.accept()
            except OSError:
                return
            with conn:
                conn.recv(4096)
                conn.sendall(b'garbage\r\n\r\n')

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{listener.getsockname()[1]}"
    listener.close()
