import pytest

from conftest import InlineExecutor, StubFetcher
from versionwatch.config.settings import WatchSettings
from versionwatch.core.models import DeprecationStatus
from versionwatch.manager import VersionManager
from versionwatch.storage.store import JsonFileStore

MARKED_PAYLOAD = (b'{"deprecated": true, "deprecation_time": 1000000,'
                  b' "warn_time": 500000, "server_time": 600000, "values": {"motd": "update soon"}}')


@pytest.fixture
def build():
    return {'value': 5}


@pytest.fixture
def manager(store, immediate, build):
    mgr = VersionManager(store, lambda: build['value'], fetcher=StubFetcher(MARKED_PAYLOAD),
                         dispatcher=immediate, executor=InlineExecutor())
    mgr.set_url_once('http://example.com/version.json')
    yield mgr
    mgr.close()


def test_fresh_install_has_no_data(manager):
    assert manager.get_installed_build() == 5
    assert manager.should_warn() is False
    assert manager.is_marked_for_deprecation() is False
    assert manager.is_deprecated() is False
    assert manager.get_deprecation_status() is DeprecationStatus.NOT_DEPRECATED
    assert manager.days_left() == -1
    assert manager.get_value('motd', 'none') == 'none'


def test_query_then_read(manager):
    calls = []
    manager.query_server(lambda: calls.append(manager.should_warn()))
    assert calls == [True]
    assert manager.is_marked_for_deprecation()
    assert manager.get_deprecation_status() is DeprecationStatus.MARKED_FOR_DEPRECATION
    assert manager.days_left() == (1000000 - 600000) // 86400
    assert manager.get_value('motd') == 'update soon'


def test_upgrade_hides_previous_build_data(manager, build):
    manager.query_server()
    build['value'] = 6
    assert manager.is_marked_for_deprecation() is False
    assert manager.get_value('motd', 'none') == 'none'
    assert manager.days_left() == -1


def test_is_just_upgraded_polarity(manager, build):
    assert manager.is_just_upgraded() is False
    assert manager.is_just_upgraded() is True
    build['value'] = 6
    assert manager.is_just_upgraded() is False


def test_from_settings_uses_file_store(tmp_path):
    settings = WatchSettings(base_url='http://example.com/v.json', data_dir=str(tmp_path / 'data'),
                             fetch_timeout=2.5)
    manager = VersionManager.from_settings(settings, 9)
    try:
        assert isinstance(manager.store, JsonFileStore)
        assert manager.orchestrator.fetcher.timeout == 2.5
        assert manager.orchestrator.resolve_url() == 'http://example.com/v.json?v=9'
    finally:
        manager.close()
    assert (tmp_path / 'data' / 'version_state.json').is_file()


def test_default_dispatcher_holds_callback_until_run_pending(store):
    manager = VersionManager(store, 5, fetcher=StubFetcher(MARKED_PAYLOAD),
                             executor=InlineExecutor())
    manager.set_url_once('http://example.com/version.json')
    calls = []

    manager.query_server(lambda: calls.append(1))
    assert calls == []

    assert manager.dispatcher.run_pending() == 1
    assert calls == [1]
    assert manager.dispatcher.run_pending() == 0
