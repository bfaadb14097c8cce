"""Version tracking data models."""

from dataclasses import dataclass, field
from enum import Enum

from versionwatch.core.errors import DecodeError


class DeprecationStatus(Enum):
    # Values match the integer status codes hosts have historically stored
    DEPRECATED = -1
    MARKED_FOR_DEPRECATION = -2
    NOT_DEPRECATED = -3


class QueryPhase(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RECONCILED = "reconciled"
    FAILED = "failed"


def _optional_int(data: dict, name: str) -> int | None:
    value = data.get(name)
    if value is None:
        return None
    # bool is an int subclass; "deprecation_time": true is a payload error
    if isinstance(value, bool):
        raise DecodeError(f"{name} must be an integer, got bool")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise DecodeError(f"{name} must be an integer, got {type(value).__name__}")
    return value


@dataclass
class VersionDescriptor:
    """Server snapshot of this build's deprecation state.

    Every field is optional. A field left as None means "not sent", which
    reconciliation turns into the field's default.
    """

    deprecated: bool | None = None
    deprecation_time: int | None = None   # epoch seconds
    warn_time: int | None = None          # epoch seconds
    server_time: int | None = None        # epoch seconds, server clock
    new_url: str | None = None
    values: dict[str, str | None] | None = None

    @staticmethod
    def from_dict(data) -> 'VersionDescriptor':
        """Build a descriptor from decoded JSON. Unknown keys are ignored."""
        if not isinstance(data, dict):
            raise DecodeError(f"descriptor must be a JSON object, got {type(data).__name__}")

        deprecated = data.get('deprecated')
        if deprecated is not None and not isinstance(deprecated, bool):
            raise DecodeError("deprecated must be a boolean")

        new_url = data.get('new_url')
        if new_url is not None and not isinstance(new_url, str):
            raise DecodeError("new_url must be a string")

        values = data.get('values')
        if values is not None:
            if not isinstance(values, dict):
                raise DecodeError("values must be a JSON object")
            for key, value in values.items():
                if value is not None and not isinstance(value, str):
                    raise DecodeError(f"values[{key!r}] must be a string")
            values = dict(values)

        return VersionDescriptor(
            deprecated=deprecated,
            deprecation_time=_optional_int(data, 'deprecation_time'),
            warn_time=_optional_int(data, 'warn_time'),
            server_time=_optional_int(data, 'server_time'),
            new_url=new_url,
            values=values,
        )


@dataclass
class VersionState:
    """Locally persisted record, valid only while matched_build is installed."""

    matched_build: int = 0
    deprecated: bool = False
    deprecation_time: int = 0    # 0 = unset
    warn_time: int = 0           # 0 = unset
    server_time: int = 0         # 0 = unset
    url: str | None = None
    custom_values: dict[str, str] = field(default_factory=dict)
    last_seen_build: int = 0

    def matches(self, installed_build: int) -> bool:
        return self.matched_build == installed_build
