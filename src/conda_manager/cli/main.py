# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import logging
import os
import typing
from argparse import REMAINDER, ArgumentParser

from conda_manager import __version__

from . import commands

if typing.TYPE_CHECKING:
    # This is here to prevent potential future breaking API changes
    # in argparse from affecting at runtime
    from argparse import _SubParsersAction


def cli() -> ArgumentParser:
    """Construct the command-line argument parser."""
    common = ArgumentParser(add_help=False)
    common.add_argument(
        "--deps-file",
        metavar="DEPS_FILE",
        default=None,
        help=(
            "Configuration written by 'conda-manager build' "
            "(defaults to $CONDA_MANAGER_DEPS or ~/.conda-manager/deps.yml)"
        ),
    )

    target = ArgumentParser(add_help=False)
    group = target.add_mutually_exclusive_group()
    group.add_argument(
        "-n",
        "--name",
        metavar="ENV_NAME",
        default=None,
        help="Named environment to act on (defaults to the root environment)",
    )
    group.add_argument(
        "-p",
        "--prefix",
        metavar="PATH",
        default=None,
        help="Existing environment directory to act on",
    )

    p = ArgumentParser(
        description="Manage a private conda installation and its environments",
        conflict_handler="resolve",
    )
    p.add_argument(
        "-V",
        "--version",
        action="version",
        help="Show the conda-manager version number and exit.",
        version="conda_manager %s" % __version__,
    )

    subparsers = p.add_subparsers(metavar="command", required=True)

    _create_build_parser(subparsers, common)
    _create_prefix_parser(subparsers, common, target)
    _create_add_parser(subparsers, common, target)
    _create_remove_parser(subparsers, common, target)
    _create_update_parser(subparsers, common, target)
    _create_list_parser(subparsers, common, target)
    _create_export_parser(subparsers, common, target)
    _create_import_parser(subparsers, common)
    _create_search_parser(subparsers, common, target)
    _create_exists_parser(subparsers, common, target)
    _create_version_parser(subparsers, common, target)
    _create_channels_parser(subparsers, common, target)
    _create_pip_interop_parser(subparsers, common, target)
    _create_pip_parser(subparsers, common, target)
    _create_clean_parser(subparsers, common)

    return p


def _create_build_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    """Add a subparser for the "build" subcommand.

    Args:
        subparsers: The existing subparsers corresponding to the "command" meta-variable.
        parent_parsers: The parent parsers, which are used to pass common arguments into the subcommands.

    """
    desc = (
        "Resolve the location of the root environment from the CONDA_MANAGER_VERSION, "
        "CONDA_MANAGER_HOME, CONDA_MANAGER_USE_MINIFORGE and CONDA_MANAGER_CONDA_EXE "
        "environment variables and write the configuration file."
    )

    p = subparsers.add_parser(
        "build", description=desc, help="Write the conda-manager configuration", parents=parent_parsers
    )
    p.add_argument(
        "--install",
        help="Also install conda into the root environment if it is missing.",
        action="store_true",
    )
    p.add_argument(
        "--force",
        help="Re-install conda even if it is already installed. Implies --install.",
        action="store_true",
    )

    p.set_defaults(func=commands.build)


def _create_prefix_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Print the location of an environment or one of its directories"

    p = subparsers.add_parser(
        "prefix", description=desc, help=desc, parents=parent_parsers
    )
    p.add_argument(
        "--dir",
        help="Which directory to print. The default is the environment prefix.",
        choices=sorted(commands.DIRECTORIES),
        default="prefix",
    )

    p.set_defaults(func=commands.prefix)


def _create_add_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    """Add a subparser for the "add" subcommand.

    Args:
        subparsers: The existing subparsers corresponding to the "command" meta-variable.
        parent_parsers: The parent parsers, which are used to pass common arguments into the subcommands.

    """
    desc = "Install packages into an environment"

    p = subparsers.add_parser(
        "add", description=desc, help=desc, parents=parent_parsers
    )
    p.add_argument(
        "-c",
        "--channel",
        help="Search this channel before the channels of the environment.",
        action="store",
        default=None,
    )
    p.add_argument(
        "--satisfied-skip-solve",
        help="Do not run the solver when the requested packages are already installed.",
        action="store_true",
    )
    p.add_argument(
        "--args",
        help=(
            "Extra arguments passed verbatim to 'conda install', "
            "for example --args='--strict-channel-priority'"
        ),
        action="store",
        default=None,
    )
    p.add_argument(
        "packages",
        help="Packages to install. The format for each package is '<name>[<op><version>]'.",
        action="store",
        nargs="+",
        metavar="PACKAGE_SPECIFICATION",
    )

    p.set_defaults(func=commands.add)


def _create_remove_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Uninstall packages from an environment"

    p = subparsers.add_parser(
        "remove", description=desc, help=desc, parents=parent_parsers
    )
    p.add_argument(
        "packages",
        help="Names of the packages to remove.",
        action="store",
        nargs="+",
        metavar="PACKAGE",
    )

    p.set_defaults(func=commands.remove)


def _create_update_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = (
        "Update all packages of an environment. Updating the root environment "
        "also updates conda itself."
    )

    p = subparsers.add_parser(
        "update", description=desc, help="Update all packages of an environment", parents=parent_parsers
    )

    p.set_defaults(func=commands.update)


def _create_list_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "List the packages installed in an environment"

    p = subparsers.add_parser(
        "list", description=desc, help=desc, parents=parent_parsers
    )
    p.add_argument(
        "--names",
        help="Only print the package names, one per line.",
        action="store_true",
    )

    p.set_defaults(func=commands.list_)


def _create_export_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Write the explicit package list of an environment to a file"

    p = subparsers.add_parser(
        "export", description=desc, help=desc, parents=parent_parsers
    )
    p.add_argument("file", help="Destination of the package list. Use - for stdout.")

    p.set_defaults(func=commands.export)


def _create_import_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Create an environment from a package list written by 'conda-manager export'"

    p = subparsers.add_parser(
        "import", description=desc, help=desc, parents=parent_parsers
    )
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "-n",
        "--name",
        metavar="ENV_NAME",
        default=None,
        help="Name of the environment to create",
    )
    group.add_argument(
        "-p",
        "--prefix",
        metavar="PATH",
        default=None,
        help="Existing directory to create the environment in",
    )
    p.add_argument(
        "-c",
        "--channel",
        help=(
            "Channel to install from and to save in the new environment. "
            "Multiple channels are added with repeated use of this argument, highest priority first."
        ),
        action="append",
        default=[],
    )
    p.add_argument("file", help="The package list.")

    p.set_defaults(func=commands.import_)


def _create_search_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Search the channels of an environment for packages"

    p = subparsers.add_parser(
        "search", description=desc, help=desc, parents=parent_parsers
    )
    p.add_argument(
        "--version",
        help="Only show packages with a build of exactly this version.",
        default=None,
    )
    p.add_argument("pattern", help="Package name or match specification.")

    p.set_defaults(func=commands.search)


def _create_exists_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = (
        "Check that a package exists in the channels of an environment. "
        "Exits with status 0 if it does and 1 otherwise."
    )

    p = subparsers.add_parser(
        "exists", description=desc, help="Check that a package exists", parents=parent_parsers
    )
    p.add_argument("spec", help="Package name, optionally with an exact version: name==version")

    p.set_defaults(func=commands.exists)


def _create_version_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Print the version of an installed package"

    p = subparsers.add_parser(
        "version", description=desc, help=desc, parents=parent_parsers
    )
    p.add_argument("package", help="Package name.")

    p.set_defaults(func=commands.version)


def _create_channels_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Show or change the channels of an environment"

    p = subparsers.add_parser(
        "channels", description=desc, help=desc, parents=parent_parsers
    )
    group = p.add_mutually_exclusive_group(required=False)
    group.add_argument(
        "--add",
        metavar="CHANNEL",
        help="Put a channel at the top of the channel list.",
        default=None,
    )
    group.add_argument(
        "--remove",
        metavar="CHANNEL",
        help="Remove a channel from the channel list.",
        default=None,
    )

    p.set_defaults(func=commands.channels)


def _create_pip_interop_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = "Show, enable or disable pip interoperability in an environment"

    p = subparsers.add_parser(
        "pip-interop", description=desc, help=desc, parents=parent_parsers
    )
    group = p.add_mutually_exclusive_group(required=False)
    group.add_argument("--enable", action="store_true", help="Enable pip interoperability.")
    group.add_argument("--disable", action="store_true", help="Disable pip interoperability.")

    p.set_defaults(func=commands.pip_interop)


def _create_pip_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    desc = (
        "Run pip in an environment. Pip interoperability must be enabled first "
        "with 'conda-manager pip-interop --enable'."
    )

    p = subparsers.add_parser(
        "pip", description=desc, help="Run pip in an environment", parents=parent_parsers
    )
    p.add_argument("pip_command", help="The pip command, for example install or uninstall.")
    p.add_argument(
        "packages",
        help="Packages passed to the pip command.",
        nargs=REMAINDER,
        default=[],
    )

    p.set_defaults(func=commands.pip)


def _create_clean_parser(
    subparsers: "_SubParsersAction", *parent_parsers: ArgumentParser
) -> None:
    """Add a subparser for the "clean" subcommand.

    Args:
        subparsers: The existing subparsers corresponding to the "command" meta-variable.
        parent_parsers: The parent parsers, which are used to pass common arguments into the subcommands.

    """
    desc = (
        "Remove unused packages and caches. Without any option the index cache, "
        "the tarballs and the unused packages are removed."
    )

    p = subparsers.add_parser(
        "clean", description=desc, help="Remove unused packages and caches", parents=parent_parsers
    )
    p.add_argument("--debug", action="store_true", help="Show debug output of conda clean.")
    p.add_argument("--index-cache", action="store_true", help="Remove the index cache.")
    p.add_argument("--lock", action="store_true", help="Remove lock files.")
    p.add_argument("--tarballs", action="store_true", help="Remove cached package tarballs.")
    p.add_argument("--packages", action="store_true", help="Remove unused packages.")
    p.add_argument("--source-cache", action="store_true", help="Remove the source cache.")

    p.set_defaults(func=commands.clean)


def parse_and_run(args: list[str] | None = None) -> int:
    """Parse the command-line arguments and run the appropriate sub-command.

    Args:
        args: Command-line arguments. Defaults to system arguments.

    Returns:
        The return code to pass to the operating system.

    """
    p = cli()
    parsed_args = p.parse_args(args)
    return parsed_args.func(parsed_args)


def main() -> int:
    """Main entry-point into the `conda-manager` command-line interface."""
    import sys

    logging.basicConfig(level=os.environ.get("CONDA_MANAGER_LOGLEVEL", "WARNING"))

    if len(sys.argv) == 1:
        args = ["-h"]
    else:
        args = sys.argv[1:]

    retcode = parse_and_run(args)
    return retcode
