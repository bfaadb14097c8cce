"""VersionManager — host-facing API.

Typical use at application start:

    manager = VersionManager.from_settings(WatchSettings.load(), BUILD)
    manager.query_server(on_complete=refresh_banner)

    # in the host main loop; refresh_banner runs here, on this thread
    manager.dispatcher.run_pending()

    if manager.is_deprecated():
        ...

Qt applications pass dispatcher=get_qt_dispatcher_class()() instead, and
the callback is delivered on the GUI thread with no pumping needed.

All read queries are synchronous store reads; only query_server() touches
the network.
"""

import logging

from versionwatch.config.settings import WatchSettings
from versionwatch.core import reconciler
from versionwatch.core.models import DeprecationStatus, VersionState
from versionwatch.core.orchestrator import QueryCycle, QueryOrchestrator
from versionwatch.core.upgrade import UpgradeDetector
from versionwatch.network.fetcher import HttpFetcher
from versionwatch.storage.state import load_state
from versionwatch.storage.store import JsonFileStore

logger = logging.getLogger(__name__)


class VersionManager:
    """Deprecation and remote-value queries for the running build."""

    def __init__(self, store, installed_build, fetcher=None, decoder=None,
                 dispatcher=None, executor=None, max_workers: int = 2):
        self.store = store
        self.orchestrator = QueryOrchestrator(
            store, installed_build,
            fetcher=fetcher, decoder=decoder, dispatcher=dispatcher,
            executor=executor, max_workers=max_workers,
        )
        self._upgrades = UpgradeDetector(store)

    @classmethod
    def from_settings(cls, settings: WatchSettings, installed_build,
                      dispatcher=None) -> 'VersionManager':
        """Manager backed by the settings' JSON state file and HTTP fetcher.

        Without a dispatcher, completion callbacks queue up until the host
        calls self.dispatcher.run_pending().
        """
        settings.ensure_dirs()
        manager = cls(
            JsonFileStore(settings.state_path()),
            installed_build,
            fetcher=HttpFetcher(timeout=settings.fetch_timeout),
            dispatcher=dispatcher,
            max_workers=settings.max_workers,
        )
        if settings.base_url:
            manager.set_url_once(settings.base_url)
        return manager

    @property
    def dispatcher(self):
        return self.orchestrator.dispatcher

    def get_installed_build(self) -> int:
        return self.orchestrator.installed_build()

    def _state(self) -> VersionState:
        return load_state(self.store)

    # ── Server ───────────────────────────────────────────────────────

    def set_url_once(self, url: str):
        self.orchestrator.set_url_once(url)

    def query_server(self, on_complete=None) -> QueryCycle | None:
        return self.orchestrator.query_server(on_complete)

    def query_server_blocking(self) -> VersionState | None:
        return self.orchestrator.query_server_blocking()

    def close(self, wait: bool = True):
        self.orchestrator.shutdown(wait=wait)

    # ── Queries ──────────────────────────────────────────────────────

    def should_warn(self) -> bool:
        """True if the user should be told this build has days left."""
        return reconciler.should_warn(self._state(), self.get_installed_build())

    def is_marked_for_deprecation(self) -> bool:
        return reconciler.is_marked_for_deprecation(self._state(), self.get_installed_build())

    def is_deprecated(self) -> bool:
        return reconciler.is_deprecated(self._state(), self.get_installed_build())

    def get_deprecation_status(self) -> DeprecationStatus:
        return reconciler.deprecation_status(self._state(), self.get_installed_build())

    def days_left(self) -> int:
        return reconciler.days_left(self._state(), self.get_installed_build())

    def get_value(self, key: str, default: str | None = None) -> str | None:
        """Custom value pushed by the server for this build, or default."""
        return reconciler.get_value(self._state(), self.get_installed_build(), key, default)

    def is_just_upgraded(self) -> bool:
        """See UpgradeDetector: True when the build is unchanged since last call."""
        return self._upgrades.is_just_upgraded(self.get_installed_build())
