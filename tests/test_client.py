"""
Tests for the openshift backed CRD client
"""

# Standard
from unittest import mock

# Third Party
from kubernetes.client.rest import ApiException
from openshift.dynamic.exceptions import ConflictError as DynamicConflictError
from openshift.dynamic.exceptions import DynamicApiError
from openshift.dynamic.exceptions import ForbiddenError
from openshift.dynamic.exceptions import NotFoundError as DynamicNotFoundError
from openshift.dynamic.exceptions import ResourceNotFoundError
import kubernetes
import pytest

# Local
from crdreg import constants
from crdreg.client import OpenshiftCrdClient
from crdreg.exceptions import (
    AlreadyExistsError,
    ClusterError,
    ConflictError,
    NotFoundError,
)

## Helpers #####################################################################

NAME = "widgets.cilium.io"
MANIFEST = {
    "apiVersion": constants.CRD_API_VERSION,
    "kind": constants.CRD_KIND,
    "metadata": {"name": NAME, "resourceVersion": "3"},
    "spec": {},
}


def make_api_error(error_class, status):
    return error_class(ApiException(status=status, reason="MOCK"))


def make_client():
    """Make a client around a mock DynamicClient and return both the client
    and the mock CRD resource handle
    """
    dynamic_client = mock.MagicMock()
    handle = mock.MagicMock()
    dynamic_client.resources.get.return_value = handle
    return OpenshiftCrdClient(dynamic_client=dynamic_client), handle


## Resource Handle #############################################################


def test_resource_handle_lookup():
    """The handle is looked up once for the v1 CRD kind"""
    client, handle = make_client()
    assert client.resource_handle is handle
    assert client.resource_handle is handle
    client.client.resources.get.assert_called_once_with(
        api_version=constants.CRD_API_VERSION, kind=constants.CRD_KIND
    )


def test_resource_handle_missing():
    """A missing CRD API is a cluster error"""
    client, _ = make_client()
    client.client.resources.get.side_effect = ResourceNotFoundError("nope")
    with pytest.raises(ClusterError):
        client.get(NAME)


def test_setup_client_out_of_cluster():
    """Without in-cluster config, the kubeconfig is used"""
    with mock.patch(
        "kubernetes.config.load_incluster_config",
        side_effect=kubernetes.config.ConfigException,
    ), mock.patch(
        "kubernetes.config.new_client_from_config",
        return_value=mock.MagicMock(),
    ) as new_client, mock.patch(
        "crdreg.client.DynamicClient"
    ) as dynamic_client:
        client = OpenshiftCrdClient()
        assert client.client is dynamic_client.return_value
    new_client.assert_called_once()


## Operations ##################################################################


def test_get():
    client, handle = make_client()
    handle.get.return_value.to_dict.return_value = MANIFEST
    assert client.get(NAME) == MANIFEST
    handle.get.assert_called_once_with(name=NAME)


def test_create():
    client, handle = make_client()
    handle.create.return_value.to_dict.return_value = MANIFEST
    assert client.create(MANIFEST) == MANIFEST
    handle.create.assert_called_once_with(
        body=MANIFEST, field_manager=constants.FIELD_MANAGER
    )


def test_update():
    client, handle = make_client()
    handle.replace.return_value.to_dict.return_value = MANIFEST
    assert client.update(MANIFEST) == MANIFEST
    handle.replace.assert_called_once_with(
        body=MANIFEST, name=NAME, field_manager=constants.FIELD_MANAGER
    )


def test_delete():
    client, handle = make_client()
    client.delete(NAME)
    handle.delete.assert_called_once_with(name=NAME)


## Error Translation ###########################################################


@pytest.mark.parametrize(
    ["method", "arg", "handle_method", "error", "expected"],
    [
        ("get", NAME, "get", make_api_error(DynamicNotFoundError, 404), NotFoundError),
        ("get", NAME, "get", make_api_error(ForbiddenError, 403), ClusterError),
        (
            "create",
            MANIFEST,
            "create",
            make_api_error(DynamicConflictError, 409),
            AlreadyExistsError,
        ),
        ("create", MANIFEST, "create", make_api_error(DynamicApiError, 500), ClusterError),
        (
            "update",
            MANIFEST,
            "replace",
            make_api_error(DynamicConflictError, 409),
            ConflictError,
        ),
        (
            "update",
            MANIFEST,
            "replace",
            make_api_error(DynamicNotFoundError, 404),
            NotFoundError,
        ),
        ("update", MANIFEST, "replace", make_api_error(ForbiddenError, 403), ClusterError),
        (
            "delete",
            NAME,
            "delete",
            make_api_error(DynamicNotFoundError, 404),
            NotFoundError,
        ),
        ("delete", NAME, "delete", make_api_error(DynamicApiError, 500), ClusterError),
    ],
)
def test_error_translation(method, arg, handle_method, error, expected):
    """Errors from the dynamic client are translated to crdreg errors"""
    client, handle = make_client()
    getattr(handle, handle_method).side_effect = error
    with pytest.raises(expected):
        getattr(client, method)(arg)
