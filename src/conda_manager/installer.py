# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Bootstrap a private conda installation."""
from __future__ import annotations

import logging
import os
import platform
import subprocess
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Optional, Union

import requests

from .conda import call_conda, quiet_flags
from .config import CondaConfig
from .environment import (
    ROOT,
    Environment,
    EnvironmentRef,
    resolve_environment,
    root_environment,
)
from .exceptions import BootstrapError, UnsupportedPlatformError

MINICONDA_URL = (
    "https://repo.anaconda.com/miniconda/Miniconda{version}-latest-{os}-{arch}.{ext}"
)
MINIFORGE_URL = (
    "https://github.com/conda-forge/miniforge/releases/latest/download/"
    "Miniforge3-{os}-{arch}.{ext}"
)

_OS_NAMES = {"Darwin": "MacOSX", "Linux": "Linux", "Windows": "Windows"}

CHUNK_SIZE = 1024 * 1024

logger = logging.getLogger(__name__)


def _installer_arch(os_name: str, machine: str, miniforge: bool) -> str:
    machine = machine.lower()

    if machine in ("x86_64", "amd64"):
        return "x86_64"
    if machine in ("i386", "i686", "x86") and os_name in ("Linux", "Windows"):
        if not miniforge:
            return "x86"
    if machine in ("arm64", "aarch64"):
        if os_name == "MacOSX":
            return "arm64"
        if os_name == "Linux":
            return "aarch64"
    if machine == "ppc64le" and os_name == "Linux":
        return "ppc64le"

    flavor = "Miniforge" if miniforge else "Miniconda"
    raise UnsupportedPlatformError(
        f"There is no {flavor} installer for {os_name} on {machine}."
    )


def installer_url(
    config: CondaConfig,
    system: Optional[str] = None,
    machine: Optional[str] = None,
) -> str:
    """Get the URL of the Miniconda (or Miniforge) installer for this host.

    Args:
        config:  Selects the installer flavor and Miniconda version.
        system:  Operating system as reported by platform.system().
        machine: Architecture as reported by platform.machine().

    Raises:
        UnsupportedPlatformError: If no installer exists for the host.

    """
    system = platform.system() if system is None else system
    machine = platform.machine() if machine is None else machine

    try:
        os_name = _OS_NAMES[system]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported OS: {system}")

    arch = _installer_arch(os_name, machine, config.use_miniforge)
    ext = "exe" if os_name == "Windows" else "sh"

    if config.use_miniforge:
        if config.miniconda_version != "3":
            raise UnsupportedPlatformError(
                "Miniforge only provides a Python 3 installer, "
                f"but Miniconda version {config.miniconda_version} was requested."
            )
        return MINIFORGE_URL.format(os=os_name, arch=arch, ext=ext)

    return MINICONDA_URL.format(
        version=config.miniconda_version, os=os_name, arch=arch, ext=ext
    )


def is_installed(config: CondaConfig) -> bool:
    return Path(config.conda_exe).is_file()


def _check_conda_exe_location(config: CondaConfig) -> None:
    root = Path(config.root_prefix).absolute()
    exe = Path(config.conda_exe).absolute()
    try:
        exe.relative_to(root)
    except ValueError:
        raise BootstrapError(
            f"The conda executable {exe} does not exist and is not located within "
            f"the root prefix {root}, so installing conda there cannot provide it.\n"
            f"Check CONDA_MANAGER_CONDA_EXE and run 'conda-manager build' again."
        )


def download_installer(url: str, destination: Union[str, Path]) -> Path:
    """Stream the installer at url to destination.

    Raises:
        BootstrapError: If the download fails.

    """
    destination = Path(destination)
    logger.info(f"downloading conda installer from {url}")

    try:
        with requests.get(url, stream=True) as resp:
            resp.raise_for_status()
            with destination.open("wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
    except requests.RequestException as e:
        raise BootstrapError(f"Failed to download the conda installer from {url}\n{e}")

    return destination


def run_installer(
    installer: Union[str, Path], root_prefix: Union[str, Path], windows: bool = False
) -> None:
    """Run the installer non-interactively into root_prefix.

    Raises:
        BootstrapError: If the installer exits with a non-zero status.

    """
    installer = Path(installer)
    root_prefix = Path(root_prefix)

    if windows:
        if "  " in str(root_prefix):
            raise BootstrapError(
                f"The installer fails when the path {root_prefix} contains two consecutive spaces."
            )
        # /D= must be the last argument and must not be quoted.
        args = [
            str(installer),
            "/S",
            "/NoShortcuts=1",
            "/NoRegistry=1",
            "/AddToPath=0",
            "/RegisterPython=0",
        ]
        cmd: Union[str, list] = subprocess.list2cmdline(args) + f" /D={root_prefix}"
    else:
        os.chmod(installer, 0o755)
        cmd = [str(installer), "-b", "-f", "-p", str(root_prefix)]

    logger.info(f"installing conda into {root_prefix}")
    proc = subprocess.run(cmd)
    if proc.returncode != 0:
        raise BootstrapError(
            f"The conda installer {installer.name} failed with exit status {proc.returncode}."
        )


def install_conda(root: Environment) -> None:
    """Download and run the installer, then configure and update the new conda."""
    config = root.config
    url = installer_url(config, system="Windows" if root.windows else None)

    root.prefix.mkdir(parents=True, exist_ok=True)

    with TemporaryDirectory() as tmp:
        installer = Path(tmp) / ("installer.exe" if root.windows else "installer.sh")
        download_installer(url, installer)
        run_installer(installer, root.prefix, windows=root.windows)

    if not config.use_miniforge:
        call_conda(
            [
                "config",
                *("--add", "channels", "defaults"),
                *("--file", str(root.condarc)),
                "--force",
            ],
            root,
        )

    # the installer may ship an older conda than the latest release
    call_conda(["update", *quiet_flags(), "-y", "conda"], root)


def ensure_installed(
    env: EnvironmentRef = ROOT,
    force: bool = False,
    config: Optional[CondaConfig] = None,
) -> None:
    """Install conda if needed and create the environment if it does not exist.

    Args:
        env:    The environment that must exist afterwards.
        force:  Re-install conda even if the executable already exists.
        config: The conda-manager configuration.

    Raises:
        BootstrapError: If conda cannot be installed.
        CondaCommandError: If creating the environment fails.

    """
    environment = resolve_environment(env, config)
    config = environment.config
    root = root_environment(config, windows=environment.windows)

    if force or not is_installed(config):
        _check_conda_exe_location(config)
        install_conda(root)

    if not environment.prefix.is_dir():
        logger.info(
            f"creating conda environment {environment.label} at {environment.prefix}"
        )
        call_conda(
            ["create", *quiet_flags(), "-y", "-p", str(environment.prefix)], root
        )
