"""
The definition builder turns the embedded CRD documents that ship with the
package into canonical descriptors that the reconciler can push to the cluster
"""

# Standard
from dataclasses import dataclass
from typing import List, Optional, Tuple
import copy
import os

# Third Party
import yaml

# First Party
import alog

# Local
from . import config, constants
from .exceptions import SchemaDecodeError

log = alog.use_channel("DEFN")

# Directory holding the embedded CRD documents
CRD_DOCUMENT_DIR = os.path.join(os.path.dirname(__file__), "crds")

# The embedded document for each managed kind
KIND_DOCUMENTS = {
    constants.CNP_KIND: "ciliumnetworkpolicies.yaml",
    constants.CCNP_KIND: "ciliumclusterwidenetworkpolicies.yaml",
    constants.CEP_KIND: "ciliumendpoints.yaml",
    constants.NODE_KIND: "ciliumnodes.yaml",
    constants.IDENTITY_KIND: "ciliumidentities.yaml",
}

# Schema used in the rendered manifest when a kind has no validation. The v1
# API requires every served version to carry a schema.
_PERMISSIVE_SCHEMA = {"type": "object", "x-kubernetes-preserve-unknown-fields": True}


@dataclass(frozen=True)
class ResourceKindDescriptor:
    """The canonical description of a single custom resource type"""

    group: str
    version: str
    kind: str
    plural: str
    singular: str
    short_names: Tuple[str, ...]
    scope: str
    schema_version: str
    validation: Optional[dict] = None
    subresources: Optional[dict] = None
    additional_printer_columns: Optional[List[dict]] = None

    @property
    def name(self) -> str:
        """The cluster-wide unique name of the definition"""
        return f"{self.plural}.{self.group}"

    @property
    def labels(self) -> dict:
        return {constants.SCHEMA_VERSION_LABEL: self.schema_version}

    def to_spec(self) -> dict:
        """Render the CRD spec for this descriptor"""
        version = {
            "name": self.version,
            "served": True,
            "storage": True,
            "schema": {
                "openAPIV3Schema": copy.deepcopy(
                    self.validation if self.validation else _PERMISSIVE_SCHEMA
                )
            },
        }
        if self.subresources:
            version["subresources"] = copy.deepcopy(self.subresources)
        if self.additional_printer_columns:
            version["additionalPrinterColumns"] = copy.deepcopy(
                self.additional_printer_columns
            )

        names = {
            "plural": self.plural,
            "singular": self.singular,
            "kind": self.kind,
        }
        if self.short_names:
            names["shortNames"] = list(self.short_names)

        return {
            "group": self.group,
            "names": names,
            "scope": self.scope,
            "versions": [version],
        }

    def to_manifest(self) -> dict:
        """Render the full CustomResourceDefinition manifest"""
        return {
            "apiVersion": constants.CRD_API_VERSION,
            "kind": constants.CRD_KIND,
            "metadata": {
                "name": self.name,
                "labels": self.labels,
            },
            "spec": self.to_spec(),
        }


## Loading #####################################################################


def load_schema_document(kind: str) -> bytes:
    """Read the embedded CRD document for the given kind

    Raises:
        SchemaDecodeError:  If the kind is unknown or the document is missing
    """
    file_name = KIND_DOCUMENTS.get(kind)
    if file_name is None:
        raise SchemaDecodeError(f"No embedded CRD document for kind {kind}")
    path = os.path.join(CRD_DOCUMENT_DIR, file_name)
    log.debug2("Loading CRD document for [%s] from %s", kind, path)
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except OSError as err:
        raise SchemaDecodeError(
            f"Failed to read embedded CRD document for {kind}: {err}"
        ) from err


def build_descriptor(
    kind: str,
    document: bytes,
    schema_version: Optional[str] = None,
    group: Optional[str] = None,
    version: Optional[str] = None,
) -> ResourceKindDescriptor:
    """Decode an embedded CRD document into a ResourceKindDescriptor

    The group and version always come from the library config (or the given
    overrides) rather than the document so that all managed kinds share the
    same API group version.

    Args:
        kind:  str
            The kind the document is expected to describe
        document:  bytes
            The raw yaml CRD document
        schema_version:  Optional[str]
            The schema revision to stamp on the descriptor
        group:  Optional[str]
            Override for the configured API group
        version:  Optional[str]
            Override for the configured API version

    Returns:
        descriptor:  ResourceKindDescriptor
            The canonical descriptor for the kind

    Raises:
        SchemaDecodeError:  If the document is not a usable CRD document
    """
    try:
        crd = yaml.safe_load(document)
    except yaml.YAMLError as err:
        raise SchemaDecodeError(f"Failed to parse CRD document for {kind}: {err}") from err
    if not isinstance(crd, dict) or not isinstance(crd.get("spec"), dict):
        raise SchemaDecodeError(f"CRD document for {kind} has no spec")

    spec = crd["spec"]
    names = spec.get("names") or {}
    if not names.get("plural") or not names.get("kind"):
        raise SchemaDecodeError(f"CRD document for {kind} is missing names")
    if names["kind"] != kind:
        raise SchemaDecodeError(
            f"CRD document for {kind} describes {names['kind']} instead"
        )

    scope = spec.get("scope", constants.SCOPE_NAMESPACED)
    if scope not in (constants.SCOPE_CLUSTER, constants.SCOPE_NAMESPACED):
        raise SchemaDecodeError(f"CRD document for {kind} has invalid scope {scope}")

    versions = spec.get("versions") or [{}]
    if not isinstance(versions, list) or not isinstance(versions[0], dict):
        raise SchemaDecodeError(f"CRD document for {kind} has malformed versions")
    doc_version = versions[0]

    descriptor = ResourceKindDescriptor(
        group=group or config.crd_group,
        version=version or config.crd_version,
        kind=names["kind"],
        plural=names["plural"],
        singular=names.get("singular", names["plural"]),
        short_names=tuple(names.get("shortNames") or ()),
        scope=scope,
        schema_version=schema_version or config.schema_version,
        validation=(doc_version.get("schema") or {}).get("openAPIV3Schema"),
        subresources=doc_version.get("subresources"),
        additional_printer_columns=doc_version.get("additionalPrinterColumns"),
    )
    log.debug2(
        "Built descriptor for [%s] with validation? %s",
        descriptor.name,
        descriptor.validation is not None,
    )
    return descriptor


def get_descriptor(kind: str, schema_version: Optional[str] = None):
    """Load and build the descriptor for one of the managed kinds"""
    return build_descriptor(
        kind, load_schema_document(kind), schema_version=schema_version
    )
