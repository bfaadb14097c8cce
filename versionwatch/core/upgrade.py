"""One-shot upgrade edge detector."""

import logging

from versionwatch.storage.state import KEY_OLD_VERSION, save_last_seen_build

logger = logging.getLogger(__name__)


class UpgradeDetector:
    """Remembers the last installed build it was asked about.

    The polarity is historical and kept on purpose: is_just_upgraded()
    returns True when the build is the SAME as on the previous call, and
    False on the first call after a change (including a fresh install,
    since the stored default is 0). Hosts relying on it must read it
    that way.
    """

    def __init__(self, store):
        self._store = store

    def is_just_upgraded(self, installed_build: int) -> bool:
        stored = self._store.get(KEY_OLD_VERSION, 0)
        save_last_seen_build(self._store, installed_build)
        if stored != installed_build:
            logger.info("Installed build changed: %s -> %d", stored, installed_build)
        return stored == installed_build
