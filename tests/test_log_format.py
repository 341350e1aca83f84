"""
Tests for the custom json log formatter
"""

# Standard
import json
import logging

# Local
from crdreg.log_format import CrdRegJsonFormatter


def make_record(**extra):
    record = logging.LogRecord(
        name="RECON",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello %s",
        args=("world",),
        exc_info=None,
    )
    for key, val in extra.items():
        setattr(record, key, val)
    return record


def test_resource_fields():
    """The definition being reconciled is identified in the log line"""
    resource = {
        "metadata": {"name": "widgets.cilium.io", "resourceVersion": "7"},
        "spec": {"names": {"kind": "Widget"}},
    }
    line = json.loads(CrdRegJsonFormatter().format(make_record(resource=resource)))
    assert line["crdName"] == "widgets.cilium.io"
    assert line["crdKind"] == "Widget"
    assert line["resourceVersion"] == "7"
    assert "process" in line
    assert "thread" in line


def test_no_resource():
    """Records without a resource format cleanly"""
    line = json.loads(CrdRegJsonFormatter().format(make_record()))
    assert "crdName" not in line
