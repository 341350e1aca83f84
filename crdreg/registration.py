"""
Top level registration of every definition the agent depends on
"""

# Standard
from typing import Dict, List, Optional
import threading

# First Party
import alog

# Local
from . import config, constants
from .client import CrdClientBase
from .definition import get_descriptor
from .reconciler import Reconciler
from .retry import RetryPolicy

log = alog.use_channel("REGIS")

# The kinds that are always registered, in registration order
BASE_KINDS = [
    constants.CNP_KIND,
    constants.CCNP_KIND,
    constants.CEP_KIND,
    constants.NODE_KIND,
]


def get_registered_kinds(identity_allocation_mode: Optional[str] = None) -> List[str]:
    """Get the ordered list of kinds to register for the given identity
    allocation mode (defaults to the configured mode)
    """
    if identity_allocation_mode is None:
        identity_allocation_mode = config.identity_allocation_mode
    kinds = list(BASE_KINDS)
    if identity_allocation_mode == constants.IDENTITY_ALLOCATION_MODE_CRD:
        kinds.append(constants.IDENTITY_KIND)
    return kinds


def get_schema_versions(kinds: List[str]) -> Dict[str, str]:
    """Build the table of current schema versions for each kind from the
    library config
    """
    overrides = config.schema_version_overrides or {}
    return {
        kind: str(overrides.get(kind, config.schema_version)) for kind in kinds
    }


def register_crds(
    client: CrdClientBase,
    identity_allocation_mode: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
    reconciler: Optional[Reconciler] = None,
) -> List[str]:
    """Create or update every definition in the cluster and wait for each to
    be established. Registration stops at the first failure.

    Args:
        client:  CrdClientBase
            The client used for all cluster operations
        identity_allocation_mode:  Optional[str]
            The identity allocation mode. The identity definition is only
            registered in "crd" mode.
        cancel:  Optional[threading.Event]
            Event that interrupts registration when set
        reconciler:  Optional[Reconciler]
            A preconfigured reconciler to use instead of one built from the
            library config

    Returns:
        names:  List[str]
            The names of the definitions that were reconciled, in order
    """
    kinds = get_registered_kinds(identity_allocation_mode)
    schema_versions = get_schema_versions(kinds)
    reconciler = reconciler or Reconciler(
        client,
        schema_versions=schema_versions,
        update_policy=RetryPolicy.for_update(),
        establish_policy=RetryPolicy.for_establish(),
        cancel=cancel,
    )

    names = []
    for kind in kinds:
        descriptor = get_descriptor(kind, schema_version=schema_versions[kind])
        log.debug("Registering CRD for [%s]", kind)
        reconciler.ensure(descriptor)
        names.append(descriptor.name)

    log.info("Registered %d CRDs", len(names))
    return names
