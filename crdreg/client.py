"""
The cluster clients used to read and write CustomResourceDefinition objects.
The reconciler only talks to the cluster through the CrdClientBase interface.
"""

# Standard
from typing import Optional
import abc

# Third Party
from openshift.dynamic import DynamicClient
from openshift.dynamic.exceptions import ConflictError as DynamicConflictError
from openshift.dynamic.exceptions import DynamicApiError
from openshift.dynamic.exceptions import NotFoundError as DynamicNotFoundError
from openshift.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError
from openshift.dynamic.resource import Resource
import kubernetes

# First Party
import alog

# Local
from . import constants
from .exceptions import (
    AlreadyExistsError,
    ClusterError,
    ConflictError,
    NotFoundError,
    assert_cluster,
)

log = alog.use_channel("CLNT")


class CrdClientBase(abc.ABC):
    """Base class for clients that carry out reads and writes of definitions
    in the cluster. All objects are passed as plain dicts.
    """

    @abc.abstractmethod
    def get(self, name: str) -> dict:
        """Fetch the live definition by name

        Raises:
            NotFoundError:  If no definition with this name exists
            ClusterError:  On any other failure
        """

    @abc.abstractmethod
    def create(self, manifest: dict) -> dict:
        """Create the definition and return the live object

        Raises:
            AlreadyExistsError:  If another creator got there first
            ClusterError:  On any other failure
        """

    @abc.abstractmethod
    def update(self, manifest: dict) -> dict:
        """Replace the definition using the resourceVersion in the manifest's
        metadata and return the live object

        Raises:
            ConflictError:  If the resourceVersion is stale
            ClusterError:  On any other failure
        """

    @abc.abstractmethod
    def delete(self, name: str):
        """Delete the definition by name

        Raises:
            NotFoundError:  If no definition with this name exists
            ClusterError:  On any other failure
        """


class OpenshiftCrdClient(CrdClientBase):
    """This client uses the openshift DynamicClient to interact with the
    apiextensions API of the cluster
    """

    def __init__(self, dynamic_client: Optional[DynamicClient] = None):
        """
        Args:
            dynamic_client:  Optional[DynamicClient]
                A preconfigured client to use. If not given, one is set up
                lazily based on where the process is running.
        """
        self._client = dynamic_client
        self._resource_handle = None

    @property
    def client(self) -> DynamicClient:
        """Lazy property access to the client"""
        if self._client is None:
            self._client = self._setup_client()
        return self._client

    @property
    def resource_handle(self) -> Resource:
        """Lazy property access to the CRD resource handle"""
        if self._resource_handle is None:
            try:
                self._resource_handle = self.client.resources.get(
                    api_version=constants.CRD_API_VERSION, kind=constants.CRD_KIND
                )
            except (ResourceNotFoundError, ResourceNotUniqueError) as err:
                raise ClusterError(
                    f"Failed to fetch resource handle for {constants.CRD_KIND}: {err}"
                ) from err
            assert_cluster(
                self._resource_handle is not None,
                f"No resource handle found for {constants.CRD_KIND}",
            )
        return self._resource_handle

    ## Interface ###############################################################

    def get(self, name: str) -> dict:
        log.debug2("Fetching CRD [%s]", name)
        try:
            return self.resource_handle.get(name=name).to_dict()
        except DynamicNotFoundError as err:
            raise NotFoundError(f"CRD {name} not found") from err
        except DynamicApiError as err:
            raise ClusterError(f"Failed to fetch CRD {name}: {err}") from err

    def create(self, manifest: dict) -> dict:
        name = manifest.get("metadata", {}).get("name")
        log.debug2("Creating CRD [%s]", name)
        try:
            return self.resource_handle.create(
                body=manifest, field_manager=constants.FIELD_MANAGER
            ).to_dict()
        except DynamicConflictError as err:
            raise AlreadyExistsError(f"CRD {name} already exists") from err
        except DynamicApiError as err:
            raise ClusterError(f"Failed to create CRD {name}: {err}") from err

    def update(self, manifest: dict) -> dict:
        name = manifest.get("metadata", {}).get("name")
        log.debug2(
            "Replacing CRD [%s] at resourceVersion %s",
            name,
            manifest.get("metadata", {}).get("resourceVersion"),
        )
        try:
            return self.resource_handle.replace(
                body=manifest, name=name, field_manager=constants.FIELD_MANAGER
            ).to_dict()
        except DynamicConflictError as err:
            raise ConflictError(f"Conflict updating CRD {name}: {err}") from err
        except DynamicNotFoundError as err:
            raise NotFoundError(f"CRD {name} not found") from err
        except DynamicApiError as err:
            raise ClusterError(f"Failed to update CRD {name}: {err}") from err

    def delete(self, name: str):
        log.debug2("Deleting CRD [%s]", name)
        try:
            self.resource_handle.delete(name=name)
        except DynamicNotFoundError as err:
            raise NotFoundError(f"CRD {name} not found") from err
        except DynamicApiError as err:
            raise ClusterError(f"Failed to delete CRD {name}: {err}") from err

    ## Implementation Helpers ##################################################

    @staticmethod
    def _setup_client() -> DynamicClient:
        """Create a DynamicClient that will work based on where the process is
        running
        """
        # Try in-cluster config
        try:
            log.debug2("Running with in-cluster config")
            kube_config = kubernetes.client.Configuration()
            kubernetes.config.load_incluster_config(client_configuration=kube_config)
            api_client = kubernetes.client.ApiClient(kube_config)
            return DynamicClient(api_client)

        # Fall back to out-of-cluster config
        except kubernetes.config.ConfigException:
            log.debug2("Running with out-of-cluster config")
            return DynamicClient(kubernetes.config.new_client_from_config())
