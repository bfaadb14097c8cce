"""Reconciliation of server descriptors with persisted state, plus read queries.

Everything here is a pure function of (state, installed_build[, descriptor]).
Every read is gated on state.matched_build == installed_build: a record
written for an older build must read as "no data", otherwise a freshly
upgraded app would report the previous build's deprecation until the next
successful fetch.
"""

from dataclasses import replace

from versionwatch.core.models import DeprecationStatus, VersionDescriptor, VersionState

SECONDS_PER_DAY = 86400


# ── Write side ───────────────────────────────────────────────────────

def reset(state: VersionState, installed_build: int) -> VersionState:
    """Default record for installed_build, carrying over what survives a fetch."""
    return VersionState(
        matched_build=installed_build,
        url=state.url,
        custom_values=dict(state.custom_values),
        last_seen_build=state.last_seen_build,
    )


def overlay(base: VersionState, descriptor: VersionDescriptor) -> VersionState:
    """Apply only the fields the server actually sent."""
    changes = {}
    if descriptor.deprecated is not None:
        changes['deprecated'] = descriptor.deprecated
    if descriptor.deprecation_time is not None:
        changes['deprecation_time'] = descriptor.deprecation_time
    if descriptor.warn_time is not None:
        changes['warn_time'] = descriptor.warn_time
    if descriptor.server_time is not None:
        changes['server_time'] = descriptor.server_time
    if descriptor.new_url is not None:
        changes['url'] = descriptor.new_url
    if descriptor.values:
        custom = dict(base.custom_values)
        for key, value in descriptor.values.items():
            if key is not None and value is not None:
                custom[key] = value
        changes['custom_values'] = custom
    return replace(base, **changes)


def reconcile(state: VersionState, installed_build: int,
              descriptor: VersionDescriptor) -> VersionState:
    """Full replace of the deprecation record with the server's snapshot.

    Fields missing from the descriptor fall back to defaults, except the
    URL (kept unless new_url is sent) and custom values (merged).
    """
    return overlay(reset(state, installed_build), descriptor)


# ── Read side ────────────────────────────────────────────────────────

def is_marked_for_deprecation(state: VersionState, installed_build: int) -> bool:
    """True if the server flagged this build, whatever the timing."""
    return state.matches(installed_build) and state.deprecated


def deprecation_status(state: VersionState, installed_build: int) -> DeprecationStatus:
    if (state.matches(installed_build) and state.deprecated
            and state.server_time != 0 and state.deprecation_time != 0):
        if state.server_time >= state.deprecation_time:
            return DeprecationStatus.DEPRECATED
        return DeprecationStatus.MARKED_FOR_DEPRECATION
    return DeprecationStatus.NOT_DEPRECATED


def is_deprecated(state: VersionState, installed_build: int) -> bool:
    return deprecation_status(state, installed_build) is DeprecationStatus.DEPRECATED


def should_warn(state: VersionState, installed_build: int) -> bool:
    """True once server time has reached the warn time of a not-yet-deprecated build."""
    if not is_marked_for_deprecation(state, installed_build):
        return False
    if is_deprecated(state, installed_build):
        return False
    return (state.warn_time != 0 and state.server_time != 0
            and state.server_time >= state.warn_time)


def days_left(state: VersionState, installed_build: int) -> int:
    """Whole days until deprecation, -1 when unknown.

    Truncates toward zero: a deadline passed by less than a day reads 0.
    Negative results are possible, so check deprecation_status() too.
    """
    if not state.matches(installed_build):
        return -1
    if state.server_time == 0 or state.deprecation_time == 0:
        return -1
    diff = state.deprecation_time - state.server_time
    days = abs(diff) // SECONDS_PER_DAY
    return days if diff >= 0 else -days


def get_value(state: VersionState, installed_build: int, key: str, default: str | None) -> str | None:
    # Custom values belong to the build that fetched them
    if not state.matches(installed_build):
        return default
    return state.custom_values.get(key, default)
