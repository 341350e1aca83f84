"""
Tests for the common utilities
"""

# Third Party
import pytest

# Local
from crdreg import constants
from crdreg.test_helpers.helpers import make_condition
from crdreg.utils import (
    check_condition_status,
    find_condition,
    merge_configs,
    nested_get,
)


def test_nested_get():
    """Make sure nested_get walks dotted keys and falls back to the default"""
    dct = {"foo": {"bar": {"baz": 1}}, "bat": None}
    assert nested_get(dct, "foo.bar.baz") == 1
    assert nested_get(dct, "foo.bar.bif", 2) == 2
    assert nested_get(dct, "foo.nope.baz") is None
    assert nested_get(dct, "bat.baz", "x") == "x"
    with pytest.raises(TypeError):
        nested_get(dct, "foo.bar.baz.bif")


def test_merge_configs():
    """Nested dicts merge recursively and other values are replaced"""
    base = {"a": 1, "b": {"c": 2, "d": 3}, "e": {"f": 4}}
    merged = merge_configs(base, {"b": {"c": 5}, "e": "flat", "g": 6})
    assert merged is base
    assert merged == {"a": 1, "b": {"c": 5, "d": 3}, "e": "flat", "g": 6}


@pytest.mark.parametrize(
    ["status", "expected", "result"],
    [
        ("True", True, True),
        ("true", True, True),
        ("False", True, False),
        ("False", False, True),
        (True, True, True),
        (False, False, True),
        (None, True, False),
        (None, False, False),
    ],
)
def test_check_condition_status(status, expected, result):
    assert check_condition_status({"status": status}, expected) == result


def test_find_condition():
    """The first condition of the type with the expected status is found"""
    obj = {
        "status": {
            "conditions": [
                make_condition(constants.NAMES_ACCEPTED_CONDITION, False, "Conflict"),
                make_condition(constants.ESTABLISHED_CONDITION, True),
            ]
        }
    }
    assert find_condition(obj, constants.ESTABLISHED_CONDITION, True)
    assert not find_condition(obj, constants.ESTABLISHED_CONDITION, False)
    cond = find_condition(obj, constants.NAMES_ACCEPTED_CONDITION, False)
    assert cond["reason"] == "Conflict"


def test_find_condition_no_status():
    assert find_condition({}, constants.ESTABLISHED_CONDITION, True) is None
    assert find_condition({"status": None}, constants.ESTABLISHED_CONDITION, True) is None
