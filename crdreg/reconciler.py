"""
The Reconciler makes sure that the cluster holds an up to date, Established
CustomResourceDefinition for a single descriptor.

All writes rely on the cluster's own concurrency control (already-exists on
create and resourceVersion on update), so any number of processes may run the
reconciler against the same cluster at the same time.
"""

# Standard
from typing import Dict, Optional
import copy
import threading

# First Party
import alog

# Local
from . import constants
from .client import CrdClientBase
from .definition import ResourceKindDescriptor
from .exceptions import (
    AlreadyExistsError,
    CancelledError,
    CompensationError,
    ConflictError,
    CrdRegError,
    EstablishTimeoutError,
    NotFoundError,
    UpdateTimeoutError,
)
from .retry import RetryPolicy, poll_until
from .schema_version import (
    get_schema_version_label,
    needs_update,
    parse_current_version,
)
from .utils import find_condition

log = alog.use_channel("RECON")


class Reconciler:
    """The Reconciler runs the fetch/create, update and establishment phases
    for a single definition at a time
    """

    def __init__(
        self,
        client: CrdClientBase,
        schema_versions: Optional[Dict[str, str]] = None,
        update_policy: Optional[RetryPolicy] = None,
        establish_policy: Optional[RetryPolicy] = None,
        cancel: Optional[threading.Event] = None,
    ):
        """
        Args:
            client:  CrdClientBase
                The client used for all cluster operations
            schema_versions:  Optional[Dict[str, str]]
                The current schema version for each kind. Kinds that are not
                present use the version stamped on their descriptor.
            update_policy:  Optional[RetryPolicy]
                Polling bounds for updating a stale definition
            establish_policy:  Optional[RetryPolicy]
                Polling bounds for waiting on the Established condition
            cancel:  Optional[threading.Event]
                Event that interrupts any in-progress wait when set
        """
        self.client = client
        self.schema_versions = dict(schema_versions or {})
        for version in self.schema_versions.values():
            parse_current_version(version)
        self.update_policy = update_policy or RetryPolicy.for_update()
        self.establish_policy = establish_policy or RetryPolicy.for_establish()
        self.cancel = cancel or threading.Event()

    ## Public ##################################################################

    def ensure(self, descriptor: ResourceKindDescriptor):
        """Make sure the definition for the descriptor is present, up to date
        and Established in the cluster

        Args:
            descriptor:  ResourceKindDescriptor
                The definition that should be present in the cluster

        Raises:
            ConfigError:  If the current schema version for the kind is invalid
            CrdRegError:  If the definition could not be made usable
        """
        name = descriptor.name
        current_version = self.current_version(descriptor)
        parse_current_version(current_version)
        with alog.ContextTimer(log.debug2, "Reconcile duration for CRD [%s]: ", name):
            live = self._fetch_or_create(descriptor)
            if live is None:
                return

            log.debug("Checking if CRD [%s] needs update", name)
            if (
                descriptor.validation is not None
                and get_schema_version_label(live)
                and needs_update(live, current_version)
            ):
                log.info("Updating CRD [%s] to schema %s", name, current_version)
                live = self._update(descriptor, current_version) or live

            log.debug("Waiting for CRD [%s] to be available", name)
            self._wait_for_established(descriptor, live)
            log.info("CRD [%s] is installed and up-to-date", name)

    def current_version(self, descriptor: ResourceKindDescriptor) -> str:
        """Get the current schema version for the descriptor's kind"""
        return self.schema_versions.get(descriptor.kind, descriptor.schema_version)

    ## Phases ##################################################################

    def _fetch_or_create(self, descriptor: ResourceKindDescriptor) -> Optional[dict]:
        """Get the live definition, creating it if absent. Returns None when a
        concurrent creator won the race, in which case that creator owns the
        rest of the reconciliation.
        """
        try:
            return self.client.get(descriptor.name)
        except NotFoundError:
            log.info("Creating CRD [%s]", descriptor.name)

        try:
            return self.client.create(descriptor.to_manifest())
        except AlreadyExistsError:
            log.debug(
                "CRD [%s] was created concurrently by another caller",
                descriptor.name,
            )
            return None

    def _update(
        self, descriptor: ResourceKindDescriptor, current_version: str
    ) -> Optional[dict]:
        """Overwrite the live labels and spec with the descriptor's, retrying
        against the latest observed object until the update lands or another
        actor has already made the object current
        """
        updated = {}

        def try_update() -> bool:
            live = self.client.get(descriptor.name)
            if not needs_update(live, current_version):
                log.debug("CRD [%s] was updated by another actor", descriptor.name)
                updated["live"] = live
                return True

            log.debug(
                "CRD [%s] validation is stale, updating it",
                descriptor.name,
                extra={"resource": live},
            )
            live = copy.deepcopy(live)
            live.setdefault("metadata", {})["labels"] = {
                **descriptor.labels,
                constants.SCHEMA_VERSION_LABEL: current_version,
            }
            live["spec"] = descriptor.to_spec()
            try:
                updated["live"] = self.client.update(live)
            except ConflictError as err:
                log.debug("Unable to update CRD [%s]: %s", descriptor.name, err)
                return False
            return True

        try:
            poll_until(
                try_update,
                self.update_policy,
                UpdateTimeoutError,
                description=f"update of CRD {descriptor.name}",
                cancel=self.cancel,
            )
        except CrdRegError as err:
            log.error("Unable to update CRD [%s]: %s", descriptor.name, err)
            raise
        return updated.get("live")

    def _wait_for_established(self, descriptor: ResourceKindDescriptor, live: dict):
        """Poll until the definition reports Established. If it never does,
        delete it so that a broken definition does not block later schema
        changes.
        """
        state = {"live": live}

        def is_established() -> bool:
            if find_condition(state["live"], constants.ESTABLISHED_CONDITION, True):
                return True
            names_cond = find_condition(
                state["live"], constants.NAMES_ACCEPTED_CONDITION, False
            )
            if names_cond:
                log.error(
                    "Name conflict for CRD [%s]: %s",
                    descriptor.name,
                    names_cond.get("reason"),
                )
            state["live"] = self.client.get(descriptor.name)
            return False

        try:
            poll_until(
                is_established,
                self.establish_policy,
                EstablishTimeoutError,
                description=f"CRD {descriptor.name} to be established",
                cancel=self.cancel,
            )
        except CancelledError:
            log.warning("Cancelled waiting for CRD [%s]", descriptor.name)
            raise
        except Exception as err:  # pylint: disable=broad-except
            self._compensate(descriptor, err)

    def _compensate(self, descriptor: ResourceKindDescriptor, wait_error: Exception):
        """Delete a definition that never became usable and re-raise the
        original wait error
        """
        log.warning(
            "CRD [%s] did not become available, deleting it: %s",
            descriptor.name,
            wait_error,
        )
        try:
            self.client.delete(descriptor.name)
        except NotFoundError:
            log.debug("CRD [%s] was already removed", descriptor.name)
        except Exception as delete_err:  # pylint: disable=broad-except
            raise CompensationError(
                f"unable to delete k8s {descriptor.kind} CRD {descriptor.name}: "
                f"{delete_err}. Deleting CRD due: {wait_error}",
                original_error=wait_error,
                delete_error=delete_err,
            ) from wait_error
        raise wait_error
