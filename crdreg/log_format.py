"""
Custom logging formats that contain more detailed crdreg logs
"""

# First Party
from alog import AlogJsonFormatter


class CrdRegJsonFormatter(AlogJsonFormatter):
    """Custom Log Format that extends AlogJsonFormatter to add identifiers of
    the definition being reconciled along with process and thread information
    """

    _FIELDS_TO_PRINT = AlogJsonFormatter._FIELDS_TO_PRINT + [
        "process",
        "thread",
        "threadName",
        "crdName",
        "crdKind",
        "resourceVersion",
    ]

    def format(self, record):
        if resource := getattr(record, "resource", None):
            metadata = resource.get("metadata") or {}
            names = (resource.get("spec") or {}).get("names") or {}
            record.crdName = metadata.get("name")
            record.crdKind = names.get("kind")
            record.resourceVersion = metadata.get("resourceVersion")

        return super().format(record)
