"""
Register all CustomResourceDefinitions in the current cluster
"""
# Standard
import argparse

# Third Party
from openshift.dynamic import DynamicClient
import kubernetes

# First Party
import alog

# Local
from ..client import OpenshiftCrdClient
from ..exceptions import CrdRegError
from ..registration import register_crds
from .base import CmdBase

log = alog.use_channel("MAIN")


class RegisterCmd(CmdBase):
    __doc__ = __doc__

    name = "register"
    help = __doc__.strip()

    def add_args(self, parser: argparse.ArgumentParser):
        runtime_args = parser.add_argument_group("Runtime Configuration")
        runtime_args.add_argument(
            "--kubeconfig_context",
            default=None,
            help="Name of the kubeconfig context to use when running outside the cluster",
        )

    def run(self, args: argparse.Namespace) -> int:
        client = OpenshiftCrdClient(
            dynamic_client=self._context_client(args.kubeconfig_context)
        )
        try:
            names = register_crds(client)
        except CrdRegError as err:
            if err.is_fatal_error:
                log.error("CRD registration failed: %s", err)
            else:
                log.warning("CRD registration did not complete: %s", err)
            return 1
        log.info("All CRDs registered: %s", names)
        return 0

    ## Implementation ##

    @staticmethod
    def _context_client(context):
        """Build a DynamicClient for an explicit kubeconfig context. With no
        context, the client figures out its own config.
        """
        if context is None:
            return None

        return DynamicClient(kubernetes.config.new_client_from_config(context=context))
