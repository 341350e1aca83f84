"""
Schema version labels and the policy that decides when a live definition is
stale
"""

# Standard
from typing import Optional

# Third Party
import semver

# First Party
import alog

# Local
from . import constants
from .exceptions import ConfigError

log = alog.use_channel("SCHVR")


def parse_version(version: str) -> semver.Version:
    """Parse a schema version, tolerating a leading "v" and missing minor or
    patch components (e.g. "1.18" -> 1.18.0)

    Raises:
        ValueError:  If the version is not a valid semantic version
    """
    if not isinstance(version, str):
        raise ValueError(f"Schema version must be a string, got {type(version)}")
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    return semver.Version.parse(version, optional_minor_and_patch=True)


def is_valid_version(version) -> bool:
    """Check whether a value parses as a schema version"""
    try:
        parse_version(version)
    except ValueError:
        return False
    return True


def parse_current_version(version: str) -> semver.Version:
    """Parse a configured current schema version. Unlike labels read from the
    cluster, a bad current version is a configuration error.

    Raises:
        ConfigError:  If the version is not a valid semantic version
    """
    try:
        return parse_version(version)
    except ValueError as err:
        raise ConfigError(f"Invalid current schema version {version!r}: {err}") from err


def get_schema_version_label(object_state: dict) -> Optional[str]:
    """Get the schema version label from a definition, or None if absent"""
    labels = (object_state.get("metadata") or {}).get("labels") or {}
    return labels.get(constants.SCHEMA_VERSION_LABEL)


def has_validation(object_state: dict) -> bool:
    """Determine whether a definition carries an OpenAPI validation schema on
    any of its versions
    """
    for version in (object_state.get("spec") or {}).get("versions") or []:
        if (version.get("schema") or {}).get("openAPIV3Schema"):
            return True
    return False


def needs_update(object_state: dict, current_version: str) -> bool:
    """Decide whether a live definition must be replaced with the current
    schema

    A definition is up to date only if it has validation, carries the schema
    version label, and that label is not older than current_version. An
    unparsable label is treated the same as an old one.
    """
    if not has_validation(object_state):
        log.debug2("No validation found on live definition")
        return True

    label = get_schema_version_label(object_state)
    if label is None:
        log.debug2("No schema version label found on live definition")
        return True

    try:
        live_version = parse_version(label)
    except ValueError as err:
        log.debug2("Unparsable schema version label [%s]: %s", label, err)
        return True

    stale = live_version < parse_current_version(current_version)
    log.debug3("Live schema version %s < %s? %s", label, current_version, stale)
    return stale
