#!/usr/bin/env python
"""
The main module provides the executable entrypoint for crdreg
"""

# Standard
from typing import Dict, Iterator, List, Optional, Tuple
import argparse
import sys

# First Party
import aconfig
import alog

# Local
from . import config
from .cmd import RegisterCmd
from .config import library_config
from .config.config import validation_config
from .config.validation import get_invalid_params
from .log_format import CrdRegJsonFormatter

## Constants ###################################################################

log = alog.use_channel("MAIN")

# All commands, the first of which runs when no command is named
COMMANDS = [RegisterCmd()]

## Library Config Flags ########################################################


def iter_config_leaves(
    config_obj: aconfig.AttributeAccessDict, path: Optional[List[str]] = None
) -> Iterator[Tuple[List[str], object]]:
    """Walk the config and yield the key path and value of each leaf. Nested
    sections are flattened. Empty sections are leaves with no flag.
    """
    for key, val in config_obj.items():
        sub_path = (path or []) + [key]
        if isinstance(val, aconfig.AttributeAccessDict) and val:
            yield from iter_config_leaves(val, sub_path)
        else:
            yield sub_path, val


def add_library_config_args(
    parser: argparse.ArgumentParser,
    config_obj: Optional[aconfig.AttributeAccessDict] = None,
) -> Dict[str, List[str]]:
    """Add a --dotted.key flag for every scalar or list leaf of the config and
    return the map from argparse dest to config path
    """
    group = parser.add_argument_group("Library Configuration")
    config_obj = config_obj if config_obj is not None else library_config
    setters = {}
    for path, val in iter_config_leaves(config_obj):
        if isinstance(val, dict):
            continue
        flag = "--" + ".".join(path)
        if flag in parser._option_string_actions:  # pylint: disable=protected-access
            continue
        dest = "_".join(path)
        kwargs = {
            "default": val,
            "dest": dest,
            "help": f"Library config override for {'.'.join(path)} (see crdreg.config)",
        }
        if isinstance(val, list):
            kwargs["nargs"] = "*"
        elif isinstance(val, bool):
            kwargs["action"] = "store_true"
        elif val is not None:
            kwargs["type"] = type(val)
        group.add_argument(flag, **kwargs)
        setters[dest] = path
    return setters


def update_library_config(args: argparse.Namespace, setters: Dict[str, List[str]]):
    """Write the parsed flag values back into the library config"""
    for dest, path in setters.items():
        section = library_config
        for key in path[:-1]:
            section = section[key]
        section[path[-1]] = getattr(args, dest)


## Main ########################################################################


def main(argv: Optional[List[str]] = None):
    """The main module provides the executable entrypoint for crdreg"""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = argparse.ArgumentParser(description=__doc__)
    subparsers = parser.add_subparsers(help="Available commands", dest="command")

    setters = {}

    def add_shared_args(cmd_parser):
        setters.update(add_library_config_args(cmd_parser))

    for cmd in COMMANDS:
        cmd.register(subparsers, add_shared_args)

    # Fall back to the default command if none is named
    if not argv or argv[0] not in subparsers.choices:
        argv = [COMMANDS[0].name] + argv
    args = parser.parse_args(argv)

    # Provide overrides to the library configs and re-check them
    update_library_config(args, setters)
    invalid_params = get_invalid_params(library_config, validation_config)
    if invalid_params:
        log.error("Invalid library configuration: %s", invalid_params)
        sys.exit(1)

    # Reconfigure logging
    alog.configure(
        default_level=config.log_level,
        filters=config.log_filters,
        formatter=CrdRegJsonFormatter() if config.log_json else "pretty",
        thread_id=config.log_thread_id,
    )

    log.debug("Running command [%s]", args.command)
    args.func(args)


if __name__ == "__main__":  # pragma: no cover
    main()
