"""
Tests for the bounded polling helper
"""

# Standard
import threading

# Third Party
import pytest

# Local
from crdreg.exceptions import (
    CancelledError,
    ClusterError,
    ConfigError,
    EstablishTimeoutError,
)
from crdreg.retry import RetryPolicy, poll_until
from crdreg.test_helpers.helpers import FAST_POLICY, library_config


def make_condition(results):
    """Make a condition that returns the given results in order"""
    calls = []

    def condition():
        calls.append(True)
        return results[len(calls) - 1]

    condition.calls = calls
    return condition


def test_poll_until_immediate_success():
    """Make sure a condition that is already true is only called once"""
    condition = make_condition([True])
    poll_until(condition, FAST_POLICY, EstablishTimeoutError)
    assert len(condition.calls) == 1


def test_poll_until_eventual_success():
    """Make sure polling continues until the condition is true"""
    condition = make_condition([False, False, True])
    poll_until(condition, RetryPolicy(interval=0, timeout=5), EstablishTimeoutError)
    assert len(condition.calls) == 3


def test_poll_until_timeout():
    """Make sure the given error type is raised at the deadline"""
    with pytest.raises(EstablishTimeoutError, match="the thing"):
        poll_until(
            lambda: False, FAST_POLICY, EstablishTimeoutError, description="the thing"
        )


def test_poll_until_zero_timeout_calls_once():
    """Make sure a zero timeout still checks the condition once"""
    condition = make_condition([True])
    poll_until(condition, RetryPolicy(interval=1, timeout=0), EstablishTimeoutError)
    assert len(condition.calls) == 1


def test_poll_until_propagates_errors():
    """Make sure an error in the condition stops polling"""

    def condition():
        raise ClusterError("boom")

    with pytest.raises(ClusterError, match="boom"):
        poll_until(condition, FAST_POLICY, EstablishTimeoutError)


def test_poll_until_cancelled_before_start():
    """Make sure a set cancel event stops polling before the first call"""
    cancel = threading.Event()
    cancel.set()
    condition = make_condition([True])
    with pytest.raises(CancelledError):
        poll_until(condition, FAST_POLICY, EstablishTimeoutError, cancel=cancel)
    assert not condition.calls


def test_poll_until_cancelled_while_waiting():
    """Make sure setting the cancel event interrupts a long wait"""
    cancel = threading.Event()

    def condition():
        cancel.set()
        return False

    with pytest.raises(CancelledError):
        poll_until(
            condition,
            RetryPolicy(interval=60, timeout=120),
            EstablishTimeoutError,
            cancel=cancel,
        )


def test_retry_policy_validation():
    """Make sure negative bounds are rejected"""
    with pytest.raises(ConfigError):
        RetryPolicy(interval=-1, timeout=1)
    with pytest.raises(ConfigError):
        RetryPolicy(interval=1, timeout=-1)


def test_retry_policies_from_config():
    """Make sure the policies are built from the library config"""
    with library_config(
        update_poll_interval=0.25,
        update_timeout=10,
        establish_poll_interval=1,
        establish_timeout=30,
    ):
        assert RetryPolicy.for_update() == RetryPolicy(interval=0.25, timeout=10)
        assert RetryPolicy.for_establish() == RetryPolicy(interval=1, timeout=30)
