# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
import logging
import shlex
import sys
from argparse import Namespace
from functools import wraps
from pathlib import Path
from typing import Any, Callable

from .. import condarc, packages
from ..config import build_config, load_config
from ..environment import ROOT, Environment, resolve_environment
from ..exceptions import CondaManagerError
from ..installer import ensure_installed

logger = logging.getLogger(__name__)

DIRECTORIES = {
    "prefix": lambda env: env.prefix,
    "bin": lambda env: env.bin_dir,
    "lib": lambda env: env.lib_dir,
    "scripts": lambda env: env.script_dir,
    "python": lambda env: env.python_dir,
    "condarc": lambda env: env.condarc,
}


def _load_environment(args: Namespace) -> Environment:
    config = load_config(args.deps_file)

    if args.prefix is not None:
        env = Path(args.prefix)
    elif args.name is not None:
        env = args.name
    else:
        env = ROOT

    return resolve_environment(env, config)


def handle_errors(func: Callable[[Namespace], Any]) -> Callable[[Namespace], int]:
    """Wrap a subcommand function to catch exceptions and return an appropriate error code."""

    @wraps(func)
    def wrapper(args: Namespace) -> int:
        try:
            ret = func(args)
            if ret:
                return 0
            else:
                return 1
        except CondaManagerError as e:
            print(f"{e.__class__.__name__}: {e}", file=sys.stderr)
            return 1

    return wrapper


@handle_errors
def build(args: Namespace) -> bool:
    config = build_config(args.deps_file)

    print(f"root prefix:       {config.root_prefix}")
    print(f"conda executable:  {config.conda_exe}")
    print(f"miniconda version: {config.miniconda_version}")
    print(f"installer:         {'Miniforge' if config.use_miniforge else 'Miniconda'}")

    if args.install or args.force:
        ensure_installed(ROOT, force=args.force, config=config)

    return True


@handle_errors
def prefix(args: Namespace) -> bool:
    environment = _load_environment(args)
    print(DIRECTORIES[args.dir](environment))
    return True


@handle_errors
def add(args: Namespace) -> bool:
    environment = _load_environment(args)
    packages.add(
        args.packages,
        environment,
        channel=args.channel,
        args=shlex.split(args.args) if args.args else None,
        satisfied_skip_solve=args.satisfied_skip_solve,
    )
    return True


@handle_errors
def remove(args: Namespace) -> bool:
    environment = _load_environment(args)
    packages.remove(args.packages, environment)
    return True


@handle_errors
def update(args: Namespace) -> bool:
    environment = _load_environment(args)
    packages.update(environment)
    return True


@handle_errors
def list_(args: Namespace) -> bool:
    environment = _load_environment(args)
    if args.names:
        for name in sorted(packages.installed_names(environment)):
            print(name)
    else:
        packages.list_packages(environment)
    return True


@handle_errors
def export(args: Namespace) -> bool:
    environment = _load_environment(args)
    if args.file == "-":
        packages.export_list(sys.stdout, environment)
    else:
        packages.export_list(args.file, environment)
    return True


@handle_errors
def import_(args: Namespace) -> bool:
    environment = _load_environment(args)
    packages.import_list(args.file, environment, channels=args.channel)
    return True


@handle_errors
def search(args: Namespace) -> bool:
    environment = _load_environment(args)
    found = packages.search(args.pattern, environment, version=args.version)
    for name in found:
        print(name)
    return bool(found)


@handle_errors
def exists(args: Namespace) -> bool:
    environment = _load_environment(args)
    return packages.exists(args.spec, environment)


@handle_errors
def version(args: Namespace) -> bool:
    environment = _load_environment(args)
    print(packages.version(args.package, environment))
    return True


@handle_errors
def channels(args: Namespace) -> bool:
    environment = _load_environment(args)

    if args.add is not None:
        condarc.add_channel(args.add, environment)
    elif args.remove is not None:
        condarc.rm_channel(args.remove, environment)

    for channel in condarc.channels(environment):
        print(channel)
    return True


@handle_errors
def pip_interop(args: Namespace) -> bool:
    environment = _load_environment(args)

    enabled = None
    if args.enable:
        enabled = True
    elif args.disable:
        enabled = False

    state = condarc.pip_interop(enabled, environment)
    print(f"pip interoperability is {'enabled' if state else 'disabled'} in {environment.label}")
    return True


@handle_errors
def pip(args: Namespace) -> bool:
    environment = _load_environment(args)
    packages.pip(args.pip_command, args.packages, environment)
    return True


@handle_errors
def clean(args: Namespace) -> bool:
    config = load_config(args.deps_file)

    targets = dict(
        index=args.index_cache,
        locks=args.lock,
        tarballs=args.tarballs,
        packages=args.packages,
        sources=args.source_cache,
    )
    if not any(targets.values()):
        logger.info("no cleanup target selected, removing the index cache, tarballs and unused packages")
        targets.update(index=True, tarballs=True, packages=True)

    packages.clean(debug=args.debug, config=config, **targets)
    return True
