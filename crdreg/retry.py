"""
Bounded polling used while waiting on the cluster to converge
"""

# Standard
from dataclasses import dataclass
from typing import Callable, Optional, Type
import threading
import time

# First Party
import alog

# Local
from . import config
from .exceptions import CancelledError, CrdRegError, assert_config

log = alog.use_channel("RETRY")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval polling bounded by a total timeout (both in seconds)"""

    interval: float
    timeout: float

    def __post_init__(self):
        assert_config(self.interval >= 0, f"Invalid poll interval: {self.interval}")
        assert_config(self.timeout >= 0, f"Invalid poll timeout: {self.timeout}")

    @classmethod
    def for_update(cls) -> "RetryPolicy":
        """The policy for retrying updates of a stale definition"""
        return cls(
            interval=config.update_poll_interval,
            timeout=config.update_timeout,
        )

    @classmethod
    def for_establish(cls) -> "RetryPolicy":
        """The policy for waiting on the Established condition"""
        return cls(
            interval=config.establish_poll_interval,
            timeout=config.establish_timeout,
        )


def poll_until(
    condition: Callable[[], bool],
    policy: RetryPolicy,
    timeout_error: Type[CrdRegError],
    description: str = "condition",
    cancel: Optional[threading.Event] = None,
):
    """Call the condition until it returns True.

    The condition is called immediately and then once per interval until the
    policy's timeout elapses. Any exception raised by the condition stops the
    polling and is propagated.

    Args:
        condition:  Callable[[], bool]
            Returns True when done and False to keep polling
        policy:  RetryPolicy
            The interval and timeout bounds
        timeout_error:  Type[CrdRegError]
            The error type raised when the timeout elapses
        description:  str
            Human readable name of what is being waited on for logs and errors
        cancel:  Optional[threading.Event]
            If given, setting this event interrupts the wait with a
            CancelledError
    """
    cancel = cancel or threading.Event()
    deadline = time.monotonic() + policy.timeout
    attempt = 0
    while True:
        if cancel.is_set():
            raise CancelledError(f"Cancelled while waiting for {description}")

        attempt += 1
        log.debug3("Polling for %s (attempt %d)", description, attempt)
        if condition():
            log.debug2("Done polling for %s after %d attempt(s)", description, attempt)
            return

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise timeout_error(
                f"Timed out after {policy.timeout}s waiting for {description}"
            )

        if cancel.wait(min(policy.interval, remaining)):
            raise CancelledError(f"Cancelled while waiting for {description}")
