"""
Shared module to hold constant values for the library
"""

# The label stamped on every managed CRD recording which schema revision
# produced it
SCHEMA_VERSION_LABEL = "io.cilium.k8s.crd.schema.version"

# The apiextensions resource that holds the definitions
CRD_API_VERSION = "apiextensions.k8s.io/v1"
CRD_KIND = "CustomResourceDefinition"

# Kind names for each managed definition
CNP_KIND = "CiliumNetworkPolicy"
CCNP_KIND = "CiliumClusterwideNetworkPolicy"
CEP_KIND = "CiliumEndpoint"
NODE_KIND = "CiliumNode"
IDENTITY_KIND = "CiliumIdentity"

# Status conditions reported by the apiserver on a CRD
ESTABLISHED_CONDITION = "Established"
NAMES_ACCEPTED_CONDITION = "NamesAccepted"

# Valid scope values
SCOPE_CLUSTER = "Cluster"
SCOPE_NAMESPACED = "Namespaced"

# Identity allocation mode which requires the identity CRD
IDENTITY_ALLOCATION_MODE_CRD = "crd"

# Delimiter used for nested dict keys
NESTED_DICT_DELIM = "."

# Field manager name used for writes
FIELD_MANAGER = "crdreg"
