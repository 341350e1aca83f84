"""
Shared test config
"""
# Standard
from unittest import mock

# Third Party
import kubernetes
import pytest

# Local
from crdreg.test_helpers.helpers import configure_logging

configure_logging()


@pytest.fixture(autouse=True)
def no_cluster_config():
    """Keep every test away from a real cluster, even when running inside a
    pod or with KUBECONFIG exported
    """
    with mock.patch(
        "kubernetes.config.load_incluster_config",
        side_effect=kubernetes.config.ConfigException("no in-cluster config"),
    ), mock.patch(
        "kubernetes.config.new_client_from_config",
        side_effect=kubernetes.config.ConfigException("no kubeconfig"),
    ):
        yield
