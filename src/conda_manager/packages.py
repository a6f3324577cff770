# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import (
    Dict,
    Generator,
    Iterable,
    List,
    Optional,
    Set,
    TextIO,
    Union,
)

from packaging.version import InvalidVersion, Version

from .conda import call_conda, quiet_flags
from .condarc import add_channel, pip_interop
from .config import CondaConfig
from .environment import (
    ROOT,
    EnvironmentRef,
    resolve_environment,
    root_environment,
)
from .exceptions import (
    CondaCommandError,
    CondaOutputError,
    InvalidEnvironmentError,
    PackageNotFoundError,
    PipInteropError,
)
from .installer import ensure_installed
from .models import ListedPackage, PackageRecord, ParsedVersion, SearchHit
from .runner import read_output, run, run_json
from .utils import as_list

PkgOrPkgs = Union[str, Iterable[str]]
PathOrStream = Union[str, Path, TextIO]

logger = logging.getLogger(__name__)


def add(
    pkgs: PkgOrPkgs,
    env: EnvironmentRef = ROOT,
    channel: Optional[str] = None,
    args: Optional[Iterable[str]] = None,
    satisfied_skip_solve: bool = False,
    config: Optional[CondaConfig] = None,
) -> None:
    """Install one or more packages.

    Args:
        pkgs:                 A package specification or a list of them.
        env:                  The environment to install into.
        channel:              Search this channel before the environment's channels.
        args:                 Extra arguments passed verbatim to `conda install`.
        satisfied_skip_solve: Skip the solver when the specifications are already satisfied.
        config:               The conda-manager configuration.

    """
    environment = resolve_environment(env, config)

    cmd = ["install", *quiet_flags(), "-y"]
    if channel:
        cmd.extend(["-c", channel])
    if satisfied_skip_solve:
        cmd.append("--satisfied-skip-solve")
    cmd.extend(as_list(args))
    cmd.extend(as_list(pkgs))

    run(cmd, environment)


def remove(
    pkgs: PkgOrPkgs, env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> None:
    """Uninstall one or more packages."""
    environment = resolve_environment(env, config)
    run(["remove", *quiet_flags(), "-y", *as_list(pkgs)], environment)


def update(env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None) -> None:
    """Update all installed packages, and conda itself in the root environment."""
    environment = resolve_environment(env, config)
    if environment.is_root:
        run(["update", *quiet_flags(), "-y", "conda"], environment)
    run(["update", *quiet_flags(), "-y", "--all"], environment)


def parse_conda_list(output: str) -> Dict[str, PackageRecord]:
    """Parse the tabular output of `conda list`.

    Versions that cannot be parsed are kept as unparseable versions and
    reported with a warning instead of failing the whole listing.
    """
    packages: Dict[str, PackageRecord] = {}
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        fields = line.split()
        if len(fields) < 2:
            logger.warning(f"skipping unexpected conda list line: {line!r}")
            continue

        name, raw_version = fields[0], fields[1]
        version = ParsedVersion.parse(raw_version)
        if version.is_unparseable:
            logger.warning(
                f"Failed parsing the version {raw_version!r} of package {name}"
            )

        packages[name] = PackageRecord(
            name=name,
            version=version,
            build=fields[2] if len(fields) > 2 else None,
            channel=fields[3] if len(fields) > 3 else None,
            line=line,
        )
    return packages


def list_installed(
    env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> Dict[str, PackageRecord]:
    """Installed packages keyed by name."""
    environment = resolve_environment(env, config)
    return parse_conda_list(read_output(["list"], environment))


def installed_names(
    env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> Set[str]:
    return set(list_installed(env, config))


def list_packages(
    env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> None:
    """Print the installed packages to standard output."""
    environment = resolve_environment(env, config)
    run(["list"], environment)


def version(
    name: str, env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> ParsedVersion:
    """Get the version of the first installed package whose name starts with name.

    Raises:
        PackageNotFoundError: If no installed package matches.

    """
    environment = resolve_environment(env, config)
    for entry in run_json(["list"], environment):
        try:
            package = ListedPackage.from_json(entry)
        except CondaOutputError as e:
            logger.warning(f"skipping conda list entry: {e}")
            continue
        if package.name.startswith(name) or f"::{name}" in package.name:
            return package.parsed_version

    raise PackageNotFoundError(
        f"Could not find the {name} package in the {environment.label} environment"
    )


def _packages_not_found(e: CondaCommandError) -> bool:
    try:
        output = json.loads(e.output)
    except json.decoder.JSONDecodeError:
        return False
    return (
        isinstance(output, dict)
        and output.get("exception_name") == "PackagesNotFoundError"
    )


def search_hits(
    pattern: str, env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> Dict[str, List[SearchHit]]:
    """Search the channels of an environment for packages matching pattern.

    Returns:
        Every matching build, grouped by package name. A search that finds
        nothing returns an empty dictionary.

    """
    environment = resolve_environment(env, config)
    try:
        output = run_json(["search", *quiet_flags(), pattern], environment)
    except CondaCommandError as e:
        if _packages_not_found(e):
            return {}
        raise

    return {
        name: [SearchHit.parse_obj(build) for build in builds]
        for name, builds in output.items()
    }


def _version_matches(candidate: Optional[str], wanted: str) -> bool:
    if candidate is None:
        return False
    if candidate == wanted:
        return True
    try:
        return Version(candidate) == Version(wanted)
    except InvalidVersion:
        return False


def search(
    pattern: str,
    env: EnvironmentRef = ROOT,
    version: Optional[Union[str, Version]] = None,
    config: Optional[CondaConfig] = None,
) -> List[str]:
    """Search packages by name.

    Args:
        pattern: Package name or match specification.
        env:     The environment whose channels are searched.
        version: Only keep packages with a build of exactly this version.
        config:  The conda-manager configuration.

    Returns:
        The names of the matching packages.

    """
    hits = search_hits(pattern, env, config)
    if version is None:
        return list(hits)

    wanted = str(version)
    return [
        name
        for name, builds in hits.items()
        if any(_version_matches(build.version, wanted) for build in builds)
    ]


def exists(
    spec: str, env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> bool:
    """Check if a package exists, optionally in an exact version: "name==version"."""
    if "==" in spec:
        name, ver = spec.split("==", 1)
        return name in search(name, env, version=ver, config=config)
    return spec in search(spec, env, config=config)


def export_list(
    path_or_stream: PathOrStream,
    env: EnvironmentRef = ROOT,
    config: Optional[CondaConfig] = None,
) -> None:
    """Write the explicit package list of an environment (`conda list --export`)."""
    environment = resolve_environment(env, config)
    output = read_output(["list", "--export"], environment)

    if hasattr(path_or_stream, "write"):
        path_or_stream.write(output)  # type: ignore
    else:
        with Path(path_or_stream).open("wt") as f:  # type: ignore
            f.write(output)


@contextmanager
def _manifest(path_or_stream: PathOrStream) -> Generator[Path, None, None]:
    if not hasattr(path_or_stream, "read"):
        yield Path(path_or_stream)  # type: ignore
        return

    with TemporaryDirectory() as tmp:
        manifest = Path(tmp) / "package-list.txt"
        with manifest.open("wt") as f:
            f.write(path_or_stream.read())  # type: ignore
        yield manifest


def import_list(
    path_or_stream: PathOrStream,
    env: EnvironmentRef,
    channels: Iterable[str] = (),
    config: Optional[CondaConfig] = None,
) -> None:
    """Create an environment from a package list written by :func:`export_list`.

    The package list does not record channels, so they are given here and
    saved in the new environment's private condarc in the same order.

    Raises:
        InvalidEnvironmentError: If env is the root environment.

    """
    environment = resolve_environment(env, config)
    if environment.is_root:
        raise InvalidEnvironmentError(
            "A package list cannot be imported into the root environment. "
            "Give the name or prefix of the environment to create."
        )
    channels = as_list(channels)

    ensure_installed(root_environment(environment.config, windows=environment.windows))

    channel_args = [arg for c in channels for arg in ("-c", c)]
    with _manifest(path_or_stream) as manifest:
        call_conda(
            [
                "create",
                *quiet_flags(),
                "-y",
                *("-p", str(environment.prefix)),
                *channel_args,
                *("--file", str(manifest)),
            ],
            environment,
        )

    # add_channel prepends, so add in reverse to preserve the given order
    for channel in reversed(channels):
        add_channel(channel, environment)


def pip(
    cmd: str,
    pkgs: PkgOrPkgs = (),
    env: EnvironmentRef = ROOT,
    config: Optional[CondaConfig] = None,
) -> None:
    """Run a pip command in an environment, e.g. pip("install", ["requests"]).

    Raises:
        PipInteropError: If pip interoperability is not enabled for the environment.

    """
    environment = resolve_environment(env, config)

    if not pip_interop(env=environment):
        raise PipInteropError(
            f"pip interoperability is not enabled in the {environment.label} environment. "
            f"Enable it first with pip_interop(True, env) "
            f"(conda-manager pip-interop --enable)."
        )

    if not environment.pip_exe.is_file():
        add("pip", environment)

    pip_args = cmd.split()
    if pip_args[:1] == ["uninstall"] and not {"-y", "--yes"} & set(pip_args):
        pip_args.append("-y")

    call_conda(
        [*pip_args, *as_list(pkgs)], environment, executable=environment.pip_exe
    )


CLEAN_FLAGS = (
    ("index", "--index-cache"),
    ("locks", "--lock"),
    ("tarballs", "--tarballs"),
    ("packages", "--packages"),
    ("sources", "--source-cache"),
)


def clean(
    debug: bool = False,
    index: bool = True,
    locks: bool = False,
    tarballs: bool = True,
    packages: bool = True,
    sources: bool = False,
    env: EnvironmentRef = ROOT,
    config: Optional[CondaConfig] = None,
) -> None:
    """Remove unused packages and caches with `conda clean`.

    Nothing is run, and a warning is logged, when no cleanup target is selected.
    """
    environment = resolve_environment(env, config)

    selected = dict(
        index=index, locks=locks, tarballs=tarballs, packages=packages, sources=sources
    )
    flags = [flag for key, flag in CLEAN_FLAGS if selected[key]]
    if not flags:
        logger.warning("conda clean called without any target: nothing to clean")
        return

    cmd = ["clean", *quiet_flags(), "-y"]
    if debug:
        cmd.append("--debug")
    run([*cmd, *flags], environment)
