"""Version watch settings — persistence via JSON."""

import json
import logging
import os
from dataclasses import dataclass, asdict

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = os.path.join(os.environ.get('LOCALAPPDATA', '.'), 'versionwatch')


@dataclass
class WatchSettings:
    """Persistent version watch settings."""
    # Server
    base_url: str = ""                  # seeded with set_url_once() at startup
    fetch_timeout: float = 30.0         # seconds, per HTTP request
    max_workers: int = 2                # background query threads

    # Storage
    data_dir: str = ""
    state_file: str = "version_state.json"

    def __post_init__(self):
        if not self.data_dir:
            self.data_dir = DEFAULT_DATA_DIR

    @staticmethod
    def load(path: str | None = None) -> 'WatchSettings':
        """Load settings from JSON. Returns defaults if file doesn't exist."""
        if path is None:
            path = os.path.join(DEFAULT_DATA_DIR, 'settings.json')

        if not os.path.isfile(path):
            logger.info("No settings file, using defaults")
            return WatchSettings()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            settings = WatchSettings(**{k: v for k, v in data.items()
                                        if k in WatchSettings.__dataclass_fields__})
            logger.info("Loaded settings from %s", path)
            return settings
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Failed to load settings: %s", e)
            return WatchSettings()

    def save(self, path: str | None = None):
        """Save settings to JSON."""
        if path is None:
            path = os.path.join(self.data_dir, 'settings.json')

        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(asdict(self), f, indent=2)
            logger.info("Saved settings to %s", path)
        except OSError as e:
            logger.warning("Failed to save settings: %s", e)

    def state_path(self) -> str:
        return os.path.join(self.data_dir, self.state_file)

    def ensure_dirs(self):
        """Create the data directory if it doesn't exist."""
        os.makedirs(self.data_dir, exist_ok=True)
