"""
Package exports
"""

# Local
from . import config
from .client import CrdClientBase, OpenshiftCrdClient
from .definition import ResourceKindDescriptor, build_descriptor, get_descriptor
from .exceptions import assert_cluster, assert_config
from .reconciler import Reconciler
from .registration import get_registered_kinds, register_crds
from .retry import RetryPolicy
from .schema_version import needs_update
