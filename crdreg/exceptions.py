"""
This module implements custom exceptions
"""

## Base Error ##################################################################


class CrdRegError(Exception):
    """Base class for all crdreg exceptions"""

    def __init__(self, message: str, is_fatal_error: bool):
        """Construct with a flag indicating whether this is a fatal error. This
        will be a static property of all children.
        """
        super().__init__(message)
        self._is_fatal_error = is_fatal_error

    @property
    def is_fatal_error(self):
        """Property indicating whether or not this error should abort the
        registration sequence
        """
        return self._is_fatal_error


## Fatal Errors ################################################################


class CrdRegFatalError(CrdRegError):
    """A CrdRegFatalError is one that indicates the cluster is not ready for
    use and that the registration sequence must stop.
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=True)


class SchemaDecodeError(CrdRegFatalError):
    """Exception raised when an embedded CRD document cannot be decoded. The
    documents ship with the package, so this indicates a broken build.
    """


class ConfigError(CrdRegFatalError):
    """Exception caused during usage of user-provided configuration"""


class ClusterError(CrdRegFatalError):
    """Exception caused when a cluster operation fails in an unexpected way"""


class UpdateTimeoutError(CrdRegFatalError):
    """Exception raised when a stale definition could not be updated before
    the update deadline
    """


class EstablishTimeoutError(CrdRegFatalError):
    """Exception raised when a definition is never reported as Established"""


class CompensationError(CrdRegFatalError):
    """Exception raised when a definition failed to become usable and the
    cleanup delete also failed. The object may still exist in a bad state.
    """

    def __init__(self, message: str = "", original_error=None, delete_error=None):
        self.original_error = original_error
        self.delete_error = delete_error
        super().__init__(message)


## Expected Errors #############################################################


class CrdRegExpectedError(CrdRegError):
    """A CrdRegExpectedError is one that indicates an expected condition when
    talking to the cluster. These are handled by the reconciler and only
    escape when they can't be.
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=False)


class NotFoundError(CrdRegExpectedError):
    """The requested definition does not exist in the cluster"""


class AlreadyExistsError(CrdRegExpectedError):
    """A create raced with another creator that got there first"""


class ConflictError(CrdRegExpectedError):
    """An update was made against a stale resourceVersion"""


class CancelledError(CrdRegExpectedError):
    """A polling wait was interrupted by the caller's cancel signal"""


## Assertions ##################################################################


def assert_config(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a ConfigError. This should be
    used when loaded library config has values that cannot be used.
    """
    if not condition:
        raise ConfigError(message)


def assert_cluster(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a ClusterError. This should
    be used when an operation in the cluster returns something unusable.
    """
    if not condition:
        raise ClusterError(message)
