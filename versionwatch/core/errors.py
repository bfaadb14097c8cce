"""Exception types raised by versionwatch.

Only StorageError is ever expected to reach the host application. The
others are raised inside the query pipeline and collapse to a logged,
no-op cycle there.
"""


class VersionWatchError(Exception):
    """Base class for every versionwatch error."""


class ConfigurationError(VersionWatchError):
    """No usable fetch URL is configured."""


class TransportError(VersionWatchError):
    """The descriptor could not be fetched (DNS, connection, non-2xx)."""


class DecodeError(VersionWatchError):
    """The fetched payload is not a valid version descriptor."""


class StorageError(VersionWatchError):
    """The persisted store failed to load or commit."""
