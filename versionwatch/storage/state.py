"""Mapping between VersionState and persisted store keys."""

from versionwatch.core.models import VersionState

KEY_VERSION_MATCHED = 'version_matched'
KEY_DEPRECATED = 'deprecated'
KEY_DEPRECATION_TIME = 'deprecation_time'
KEY_WARN_TIME = 'warn_before_time'
KEY_SERVER_TIME = 'server_time'
KEY_URL = 'url'
KEY_OLD_VERSION = 'old_version'
# Prefix for server-sent custom values, keeps them apart from control keys
CUSTOM_VALUES_PREFIX = 'values.custom.'


def _int(data: dict, key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def load_state(store) -> VersionState:
    """Read the whole record from one store snapshot. Missing keys -> defaults."""
    data = store.snapshot()
    url = data.get(KEY_URL)
    custom = {
        key[len(CUSTOM_VALUES_PREFIX):]: value
        for key, value in data.items()
        if key.startswith(CUSTOM_VALUES_PREFIX) and isinstance(value, str)
    }
    return VersionState(
        matched_build=_int(data, KEY_VERSION_MATCHED),
        deprecated=data.get(KEY_DEPRECATED) is True,
        deprecation_time=_int(data, KEY_DEPRECATION_TIME),
        warn_time=_int(data, KEY_WARN_TIME),
        server_time=_int(data, KEY_SERVER_TIME),
        url=url if isinstance(url, str) else None,
        custom_values=custom,
        last_seen_build=_int(data, KEY_OLD_VERSION),
    )


def save_state(store, state: VersionState):
    """Commit a reconciled record in one atomic write.

    last_seen_build is owned by the upgrade detector and is left alone.
    """
    editor = store.edit()
    editor.put(KEY_VERSION_MATCHED, state.matched_build)
    editor.put(KEY_DEPRECATED, state.deprecated)
    editor.put(KEY_DEPRECATION_TIME, state.deprecation_time)
    editor.put(KEY_WARN_TIME, state.warn_time)
    editor.put(KEY_SERVER_TIME, state.server_time)
    if state.url is None:
        editor.remove(KEY_URL)
    else:
        editor.put(KEY_URL, state.url)
    for key, value in state.custom_values.items():
        editor.put(CUSTOM_VALUES_PREFIX + key, value)
    editor.commit()


def save_url(store, url: str):
    store.edit().put(KEY_URL, url).commit()


def save_last_seen_build(store, build: int):
    store.edit().put(KEY_OLD_VERSION, build).commit()
