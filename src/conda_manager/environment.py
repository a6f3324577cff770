# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Resolve environment references to filesystem locations.

An environment reference is one of:

* ``None`` or :data:`ROOT` (also ``"base"``): the root environment.
* a ``str``: a named environment living in ``<root_prefix>/envs/<name>``.
* an ``os.PathLike``: an existing directory used as the environment prefix.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

try:  # pragma: no cover
    from pydantic.v1 import BaseModel  # pragma: no cover
except ImportError:  # pragma: no cover
    from pydantic import BaseModel  # type: ignore; #pragma: no cover

from .config import CondaConfig, load_config
from .exceptions import InvalidEnvironmentError
from .utils import is_windows

ROOT = "root"
ROOT_ALIASES = (ROOT, "base")

CONDARC_FILENAME = "condarc-conda-manager.yml"


class Environment(BaseModel):
    """A resolved conda environment.

    Attributes:
        label:   Human readable name used in log messages.
        prefix:  The environment prefix.
        config:  The configuration the reference was resolved against.
        windows: Use the Windows directory layout.
        is_root: True for the root environment.

    """

    label: str
    prefix: Path
    config: CondaConfig
    windows: bool = False
    is_root: bool = False

    class Config:
        allow_mutation = False
        extra = "forbid"

    @property
    def bin_dir(self) -> Path:
        if self.windows:
            return self.prefix / "Library" / "bin"
        return self.prefix / "bin"

    @property
    def lib_dir(self) -> Path:
        if self.windows:
            return self.prefix / "Library" / "bin"
        return self.prefix / "lib"

    @property
    def script_dir(self) -> Path:
        if self.windows:
            return self.prefix / "Scripts"
        return self.bin_dir

    @property
    def python_dir(self) -> Path:
        if self.windows:
            return self.prefix
        return self.bin_dir

    @property
    def condarc(self) -> Path:
        """The private configuration file holding this environment's channels."""
        return self.prefix / CONDARC_FILENAME

    @property
    def conda_exe(self) -> Path:
        return self.config.conda_exe

    @property
    def pip_exe(self) -> Path:
        return self.script_dir / ("pip.exe" if self.windows else "pip")

    @property
    def exists(self) -> bool:
        return self.prefix.is_dir()


EnvironmentRef = Union[None, str, "os.PathLike[str]", Environment]


def root_environment(
    config: CondaConfig, windows: Optional[bool] = None
) -> Environment:
    windows = is_windows() if windows is None else windows
    return Environment(
        label=ROOT,
        prefix=config.root_prefix,
        config=config,
        windows=windows,
        is_root=True,
    )


def resolve_environment(
    env: EnvironmentRef = ROOT,
    config: Optional[CondaConfig] = None,
    windows: Optional[bool] = None,
) -> Environment:
    """Resolve an environment reference.

    Raises:
        InvalidEnvironmentError: If a name is empty or a path is not an existing directory.

    """
    if isinstance(env, Environment):
        return env

    config = load_config() if config is None else config
    windows = is_windows() if windows is None else windows

    if env is None or (isinstance(env, str) and env in ROOT_ALIASES):
        return root_environment(config, windows=windows)

    if isinstance(env, str):
        name = env.strip()
        if not name:
            raise InvalidEnvironmentError(
                "The name of a conda environment cannot be empty."
            )
        if "/" in name or "\\" in name:
            raise InvalidEnvironmentError(
                f"{env!r} is not a valid environment name. "
                f"Pass a pathlib.Path to use a directory as the environment prefix."
            )
        return Environment(
            label=name,
            prefix=config.root_prefix / "envs" / name,
            config=config,
            windows=windows,
        )

    path = Path(os.fspath(env)).expanduser()
    if not path.is_dir():
        raise InvalidEnvironmentError(f"Path to conda environment is not valid: {path}")
    path = path.resolve()
    return Environment(
        label=str(path),
        prefix=path,
        config=config,
        windows=windows,
        is_root=path == Path(config.root_prefix).resolve(),
    )


def prefix(env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None) -> Path:
    return resolve_environment(env, config).prefix


def bin_dir(env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None) -> Path:
    return resolve_environment(env, config).bin_dir


def lib_dir(env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None) -> Path:
    return resolve_environment(env, config).lib_dir


def script_dir(
    env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> Path:
    return resolve_environment(env, config).script_dir


def python_dir(
    env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> Path:
    return resolve_environment(env, config).python_dir


def conda_rc(env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None) -> Path:
    return resolve_environment(env, config).condarc
