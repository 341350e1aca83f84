"""
This module holds common helper functions for making testing easy
"""

# Standard
from contextlib import contextmanager
from typing import List, Optional
from unittest import mock
import copy
import inspect
import os

# First Party
import alog

# Local
from crdreg import constants
from crdreg.client import CrdClientBase
from crdreg.config import library_config as config_detail_dict
from crdreg.definition import ResourceKindDescriptor
from crdreg.exceptions import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
)
from crdreg.retry import RetryPolicy

log = alog.use_channel("TEST")


def configure_logging():
    alog.configure(
        os.environ.get("LOG_LEVEL", "off"),
        os.environ.get("LOG_FILTERS", ""),
        formatter="json"
        if os.environ.get("LOG_JSON", "").lower() == "true"
        else "pretty",
        thread_id=os.environ.get("LOG_THREAD_ID", "").lower() == "true",
    )


configure_logging()

TEST_GROUP = "cilium.io"
TEST_VERSION = "v2"
TEST_SCHEMA_VERSION = "1.18"

# Tight polling bounds so that timeout tests finish quickly
FAST_POLICY = RetryPolicy(interval=0.001, timeout=0.05)


@contextmanager
def library_config(**config_overrides):
    """This context manager sets library config values temporarily and reverts
    them on completion
    """
    # Override the configs and hang onto the old values
    old_vals = {}
    for key, val in config_overrides.items():
        if key in config_detail_dict:
            old_vals[key] = config_detail_dict[key]
        config_detail_dict[key] = val

    # Yield to the context
    try:
        yield
    finally:
        # Revert to the old values
        for key in config_overrides:
            if key in old_vals:
                config_detail_dict[key] = old_vals[key]
            else:
                del config_detail_dict[key]


def get_failable_method(fail_flag, method):
    """Wrap a method so that it can be configured to fail. The fail_flag may
    be an exception (instance or class) to raise, or a callable which is run
    first and whose non-None return value replaces the method's.
    """
    log.debug4(
        "Setting up failable mock of [%s] with fail flag: %s", str(method), fail_flag
    )

    def failable_method(*args, **kwargs):
        if isinstance(fail_flag, Exception) or (
            inspect.isclass(fail_flag) and issubclass(fail_flag, Exception)
        ):
            log.debug4("Raising in failable mock")
            raise fail_flag
        if callable(fail_flag):
            log.debug4("Calling callable fail flag")
            res = fail_flag(*args, **kwargs)
            if res is not None:
                return res
        log.debug4("Passing through (%s, **%s)", args, kwargs)
        return method(*args, **kwargs)

    return failable_method


def fail_n_times(error, count: int):
    """Make a callable fail flag that raises the given error for the first
    count calls and then passes through
    """
    calls = {"n": 0}

    def fail_flag(*_, **__):
        calls["n"] += 1
        if calls["n"] <= count:
            raise error
        return None

    return fail_flag


def make_condition(type_name: str, status, reason: Optional[str] = None) -> dict:
    """Helper for making conditions easily"""
    return {"type": type_name, "status": str(status), "reason": reason}


def make_descriptor(
    kind: str = "Widget",
    plural: str = "widgets",
    schema_version: str = TEST_SCHEMA_VERSION,
    validation: Optional[dict] = None,
    with_validation: bool = True,
    scope: str = constants.SCOPE_NAMESPACED,
) -> ResourceKindDescriptor:
    """Make a simple descriptor for tests"""
    if with_validation and validation is None:
        validation = {
            "type": "object",
            "properties": {"spec": {"type": "object"}},
        }
    return ResourceKindDescriptor(
        group=TEST_GROUP,
        version=TEST_VERSION,
        kind=kind,
        plural=plural,
        singular=plural[:-1],
        short_names=(),
        scope=scope,
        schema_version=schema_version,
        validation=validation if with_validation else None,
    )


def make_live_crd(
    descriptor: ResourceKindDescriptor,
    schema_version: Optional[str] = TEST_SCHEMA_VERSION,
    with_validation: bool = True,
    conditions: Optional[List[dict]] = None,
    established: bool = True,
) -> dict:
    """Make the state of a CRD as the cluster would report it"""
    manifest = descriptor.to_manifest()
    labels = {}
    if schema_version is not None:
        labels[constants.SCHEMA_VERSION_LABEL] = schema_version
    manifest["metadata"]["labels"] = labels
    if not with_validation:
        for version in manifest["spec"]["versions"]:
            version.pop("schema", None)
    if conditions is None:
        conditions = (
            [make_condition(constants.ESTABLISHED_CONDITION, True)]
            if established
            else []
        )
    manifest["status"] = {"conditions": conditions}
    return manifest


class MockCrdClient(CrdClientBase):
    """The MockCrdClient holds the state of the cluster's definitions in
    memory. Each operation is a mock.Mock so that tests can inspect calls, and
    each can be configured to fail.
    """

    def __init__(
        self,
        resources: Optional[List[dict]] = None,
        auto_establish: bool = True,
        get_fail=None,
        create_fail=None,
        update_fail=None,
        delete_fail=None,
    ):
        """
        Args:
            resources:  Optional[List[dict]]
                Definitions that already exist in the cluster
            auto_establish:  bool
                If True, created and updated definitions immediately report
                Established=True
            get_fail, create_fail, update_fail, delete_fail:
                Fail flags for each operation (see get_failable_method)
        """
        self.auto_establish = auto_establish
        self._resource_version = 0
        self.resources = {}
        for resource in resources or []:
            resource = copy.deepcopy(resource)
            resource["metadata"]["resourceVersion"] = self._next_resource_version()
            self.resources[resource["metadata"]["name"]] = resource

        self.get = mock.Mock(side_effect=get_failable_method(get_fail, self._get))
        self.create = mock.Mock(
            side_effect=get_failable_method(create_fail, self._create)
        )
        self.update = mock.Mock(
            side_effect=get_failable_method(update_fail, self._update)
        )
        self.delete = mock.Mock(
            side_effect=get_failable_method(delete_fail, self._delete)
        )

    ## Interface ###############################################################

    # NOTE: These are shadowed by the mocks set up in __init__

    def get(self, name: str) -> dict:
        return self._get(name)

    def create(self, manifest: dict) -> dict:
        return self._create(manifest)

    def update(self, manifest: dict) -> dict:
        return self._update(manifest)

    def delete(self, name: str):
        return self._delete(name)

    ## Helpers for Tests #######################################################

    def get_obj(self, name: str) -> Optional[dict]:
        return copy.deepcopy(self.resources.get(name))

    def has_obj(self, name: str) -> bool:
        return name in self.resources

    def set_conditions(self, name: str, conditions: List[dict]):
        self.resources[name].setdefault("status", {})["conditions"] = conditions

    def bump_resource_version(self, name: str):
        """Simulate a write by another actor"""
        self.resources[name]["metadata"]["resourceVersion"] = (
            self._next_resource_version()
        )

    ## Implementation ##########################################################

    def _next_resource_version(self) -> str:
        self._resource_version += 1
        return str(self._resource_version)

    def _establish(self, resource: dict):
        if self.auto_establish:
            resource["status"] = {
                "conditions": [
                    make_condition(constants.NAMES_ACCEPTED_CONDITION, True),
                    make_condition(constants.ESTABLISHED_CONDITION, True),
                ]
            }

    def _get(self, name: str) -> dict:
        if name not in self.resources:
            raise NotFoundError(f"CRD {name} not found")
        return copy.deepcopy(self.resources[name])

    def _create(self, manifest: dict) -> dict:
        name = manifest["metadata"]["name"]
        if name in self.resources:
            raise AlreadyExistsError(f"CRD {name} already exists")
        resource = copy.deepcopy(manifest)
        resource["metadata"]["resourceVersion"] = self._next_resource_version()
        resource["status"] = {"conditions": []}
        self._establish(resource)
        self.resources[name] = resource
        return copy.deepcopy(resource)

    def _update(self, manifest: dict) -> dict:
        name = manifest["metadata"]["name"]
        if name not in self.resources:
            raise NotFoundError(f"CRD {name} not found")
        current = self.resources[name]
        if (
            manifest["metadata"].get("resourceVersion")
            != current["metadata"]["resourceVersion"]
        ):
            raise ConflictError(f"Stale resourceVersion for CRD {name}")
        resource = copy.deepcopy(manifest)
        resource["metadata"]["resourceVersion"] = self._next_resource_version()
        resource["status"] = copy.deepcopy(current.get("status", {}))
        self._establish(resource)
        self.resources[name] = resource
        return copy.deepcopy(resource)

    def _delete(self, name: str):
        if name not in self.resources:
            raise NotFoundError(f"CRD {name} not found")
        del self.resources[name]
