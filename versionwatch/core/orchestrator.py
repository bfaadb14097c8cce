"""Query orchestration: URL lifecycle and the fetch, decode, reconcile cycle.

Architecture:
  QueryOrchestrator: owns the stored URL and runs query cycles on a
  background executor
  QueryCycle: handle for one cycle: phase + Future of the result
  Completion callbacks are handed to a dispatcher (see core.dispatch),
  which decides the thread they run on.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from urllib.parse import urlencode, urlsplit, urlunsplit

from versionwatch.core import reconciler
from versionwatch.core.dispatch import QueueDispatcher
from versionwatch.core.errors import ConfigurationError, DecodeError, StorageError, TransportError
from versionwatch.core.models import QueryPhase, VersionState
from versionwatch.network.decoder import JsonDescriptorDecoder
from versionwatch.network.fetcher import HttpFetcher
from versionwatch.storage.state import load_state, save_state, save_url

logger = logging.getLogger(__name__)

# Query parameter carrying the installed build, so the server can branch on it
BUILD_QUERY_PARAM = 'v'


def stamp_url(url: str, installed_build: int) -> str:
    """Append ?v=<build> to url, keeping any existing query string.

    Raises ConfigurationError if url cannot be used as a fetch URL.
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise ConfigurationError(f"Malformed URL {url!r}: {e}") from e
    if not parts.scheme or not (parts.netloc or parts.path):
        raise ConfigurationError(f"Malformed URL {url!r}")
    param = urlencode({BUILD_QUERY_PARAM: installed_build})
    query = f"{parts.query}&{param}" if parts.query else param
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class QueryCycle:
    """One fetch → decode → reconcile run."""

    def __init__(self, url: str):
        self.url = url
        self.phase = QueryPhase.IDLE
        self.future: Future = Future()

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: float | None = None) -> VersionState | None:
        """Reconciled state, or None if the cycle failed. Re-raises StorageError."""
        return self.future.result(timeout)


class QueryOrchestrator:
    """Drives server queries for one installation.

    installed_build is an int or a zero-argument callable returning one.
    Overlapping query_server() calls are not coalesced; the last cycle to
    commit wins, which is fine since each descriptor is a full snapshot.
    """

    def __init__(self, store, installed_build, fetcher=None, decoder=None,
                 dispatcher=None, executor=None, max_workers: int = 2):
        self._store = store
        self._installed_build = installed_build
        self.fetcher = fetcher or HttpFetcher()
        self.decoder = decoder or JsonDescriptorDecoder()
        self.dispatcher = dispatcher or QueueDispatcher()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix='versionwatch')
        self._in_flight = 0
        self._in_flight_lock = threading.Lock()

    # ── Installed build ──────────────────────────────────────────────

    def installed_build(self) -> int:
        """Current build id; 0 if the host's provider fails."""
        source = self._installed_build
        if not callable(source):
            return source
        try:
            build = source()
        except Exception as e:
            logger.warning("Installed build provider failed, using 0: %s", e)
            return 0
        if isinstance(build, bool) or not isinstance(build, int):
            logger.warning("Installed build provider returned %r, using 0", build)
            return 0
        return build

    # ── URL lifecycle ────────────────────────────────────────────────

    def set_url_once(self, base_url: str):
        """Seed the fetch URL on first run, and again after every upgrade.

        A URL pushed by the server (new_url) survives later calls as long
        as the installed build does not change.
        """
        state = load_state(self._store)
        build = self.installed_build()
        if state.matched_build != build or state.url is None:
            save_url(self._store, base_url)
            logger.info("Fetch URL set to %s (build %d)", base_url, build)

    def resolve_url(self) -> str | None:
        """Stored URL stamped with the installed build, or None if unusable."""
        url = load_state(self._store).url
        try:
            if url is None:
                raise ConfigurationError("No URL configured, call set_url_once() first")
            return stamp_url(url, self.installed_build())
        except ConfigurationError as e:
            logger.warning("Skipping version query: %s", e)
            return None

    # ── Query ────────────────────────────────────────────────────────

    @property
    def is_idle(self) -> bool:
        with self._in_flight_lock:
            return self._in_flight == 0

    def query_server(self, on_complete=None) -> QueryCycle | None:
        """Start a background query cycle.

        Returns None without doing anything when no URL is configured.
        on_complete() is only called after a successful reconciliation,
        through the dispatcher, never on the calling thread.
        """
        url = self.resolve_url()
        if url is None:
            return None
        cycle = QueryCycle(url)
        with self._in_flight_lock:
            self._in_flight += 1
        self._executor.submit(self._run_async, cycle, on_complete)
        return cycle

    def query_server_blocking(self) -> VersionState | None:
        """Run one cycle on the calling thread. No callback is involved."""
        url = self.resolve_url()
        if url is None:
            return None
        return self._run_cycle(QueryCycle(url))

    def _run_async(self, cycle: QueryCycle, on_complete):
        try:
            state = self._run_cycle(cycle)
        except Exception as e:
            self._finish()
            logger.error("Query to %s could not be saved: %s", cycle.url, e)
            cycle.future.set_exception(e)
            return
        self._finish()
        try:
            if state is not None and on_complete is not None:
                self.dispatcher.dispatch(on_complete)
        except Exception as e:
            cycle.future.set_exception(e)
            return
        cycle.future.set_result(state)

    def _finish(self):
        with self._in_flight_lock:
            self._in_flight -= 1

    def _run_cycle(self, cycle: QueryCycle) -> VersionState | None:
        cycle.phase = QueryPhase.FETCHING
        try:
            payload = self.fetcher.fetch(cycle.url)
            descriptor = self.decoder.decode(payload)
        except (TransportError, DecodeError) as e:
            cycle.phase = QueryPhase.FAILED
            logger.warning("Query to %s failed: %s", cycle.url, e)
            return None
        except StorageError:
            cycle.phase = QueryPhase.FAILED
            raise
        except Exception as e:
            # Fetchers and decoders are pluggable; anything they raise is a failed cycle
            cycle.phase = QueryPhase.FAILED
            logger.warning("Query to %s failed unexpectedly: %r", cycle.url, e)
            return None

        build = self.installed_build()
        state = reconciler.reconcile(load_state(self._store), build, descriptor)
        try:
            save_state(self._store, state)
        except Exception:
            cycle.phase = QueryPhase.FAILED
            raise
        cycle.phase = QueryPhase.RECONCILED
        logger.debug("Successful query to %s", cycle.url)
        return state

    def shutdown(self, wait: bool = True):
        """Stop the executor if this orchestrator created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
