"""
Common utilities shared across the library
"""

# Standard
from typing import Any, List, Optional

# First Party
import alog

# Local
from . import constants

log = alog.use_channel("CRUTL")

# Sentinel for missing dict values
__MISSING__ = "__MISSING__"

## Dicts #######################################################################


def merge_configs(base: dict, overrides: dict) -> dict:
    """Deep merge the overrides into the base in place and return the base

    Nested dicts present in both are merged recursively. Any other override
    value replaces the base value.
    """
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = merge_configs(base[key], value)
        else:
            base[key] = value
    return base


def nested_get(dct: dict, key: str, dflt=None) -> Any:
    """Helper to get values from a dict using 'foo.bar' key notation

    Args:
        dct:  dict
            The dict to search
        key:  str
            Key that may contain '.' notation indicating dict nesting

    Returns:
        val:  Any
            Whatever is found at the given key or dflt if the key is not found.
            This includes missing intermediate dicts.
    """
    parts = key.split(constants.NESTED_DICT_DELIM)
    for i, part in enumerate(parts[:-1]):
        dct = dct.get(part, __MISSING__)
        if dct is __MISSING__ or dct is None:
            return dflt
        if not isinstance(dct, dict):
            raise TypeError(
                "Intermediate key {} is not a dict".format(  # pylint: disable=consider-using-f-string
                    constants.NESTED_DICT_DELIM.join(parts[: i + 1])
                )
            )
    return dct.get(parts[-1], dflt)


## Conditions ##################################################################


def get_conditions(object_state: dict, type_val: str) -> List[dict]:
    """Get the list of conditions of the given type from an object state"""
    return [
        cond
        for cond in (object_state.get("status") or {}).get("conditions") or []
        if cond.get("type") == type_val
    ]


def check_condition_status(condition: dict, expected_status: bool) -> bool:
    """Parse the various ways a condition 'status' may be represented and
    compare it with the expected value
    """
    obj_status = condition.get("status")
    if obj_status is None:
        return False
    if isinstance(obj_status, str):
        return obj_status.lower() == str(expected_status).lower()
    return bool(obj_status) == expected_status


def find_condition(
    object_state: dict, type_val: str, expected_status: bool
) -> Optional[dict]:
    """Find the first condition of the given type that has the expected status,
    or None if there is no such condition
    """
    for cond in get_conditions(object_state, type_val):
        if check_condition_status(cond, expected_status):
            log.debug3("Found [%s=%s] condition: %s", type_val, expected_status, cond)
            return cond
    return None
