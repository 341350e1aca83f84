"""
Base class for all crdreg commands
"""

# Standard
from typing import Callable, Optional
import abc
import argparse
import sys


class CmdBase(abc.ABC):
    """A command owns one subparser. Running it turns the command's return
    code into the process exit code.
    """

    # The subcommand name and its one-line help
    name: str = None
    help: str = None

    def register(
        self,
        subparsers: argparse._SubParsersAction,
        add_shared_args: Optional[Callable[[argparse.ArgumentParser], None]] = None,
    ) -> argparse.ArgumentParser:
        """Add this command's subparser with its own args plus any args shared
        by all commands, and route parsed args back to this command
        """
        parser = subparsers.add_parser(self.name, help=self.help)
        self.add_args(parser)
        if add_shared_args is not None:
            add_shared_args(parser)
        parser.set_defaults(func=self)
        return parser

    def __call__(self, args: argparse.Namespace):
        sys.exit(self.run(args))

    @abc.abstractmethod
    def add_args(self, parser: argparse.ArgumentParser):
        """Add this command's own arguments to its subparser"""

    @abc.abstractmethod
    def run(self, args: argparse.Namespace) -> int:
        """Execute the command and return the exit code"""
