# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Build-time constants that locate the private conda installation.

The constants are resolved once by :func:`build_config` (from environment
variables and any previously written file) and persisted as YAML. Every later
operation reads them back with :func:`load_config`.
"""
from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Mapping, Optional, TextIO, Union

from ruamel.yaml import YAML

try:  # pragma: no cover
    # Version 2 provides a v1 API
    from pydantic.v1 import BaseModel, ValidationError, validator  # pragma: no cover
except ImportError:  # pragma: no cover
    from pydantic import BaseModel  # type: ignore; #pragma: no cover
    from pydantic import ValidationError  # type: ignore; #pragma: no cover
    from pydantic import validator  # type: ignore; #pragma: no cover

from .exceptions import ConfigurationError
from .utils import is_truthy, is_windows

logger = logging.getLogger(__name__)

VERSION_VAR = "CONDA_MANAGER_VERSION"
HOME_VAR = "CONDA_MANAGER_HOME"
MINIFORGE_VAR = "CONDA_MANAGER_USE_MINIFORGE"
CONDA_EXE_VAR = "CONDA_MANAGER_CONDA_EXE"
DEPS_VAR = "CONDA_MANAGER_DEPS"

DEPS_FILENAME = "deps.yml"
DEFAULT_MINICONDA_VERSION = "3"
SUPPORTED_MINICONDA_VERSIONS = ("2", "3")

yaml = YAML(typ="rt")
yaml.default_flow_style = False
yaml.block_seq_indent = 2
yaml.indent = 2


class BaseYaml(BaseModel):
    def yaml(self, stream: Union[TextIO, Path]):
        # json_encoders turn paths into plain strings
        encoded = json.loads(self.json())
        return yaml.dump(encoded, stream)

    @classmethod
    def parse_yaml(cls, fn: Union[str, Path]):
        d = yaml.load(Path(fn))
        if d is None:
            msg = (
                f"Failed to read {fn} as {cls.__name__}. The file appears to be empty."
            )
            raise ConfigurationError(msg)
        try:
            return cls(**d)
        except (TypeError, ValidationError) as e:
            msg = f"Failed to read {fn} as {cls.__name__}\n{str(e)}"
            raise ConfigurationError(msg)

    class Config:
        json_encoders = {Path: lambda v: v.as_posix()}


class CondaConfig(BaseYaml):
    """The resolved location and flavor of the private conda installation.

    Attributes:
        root_prefix:       Prefix of the root environment.
        miniconda_version: Major version of the Miniconda installer, "2" or "3".
        use_miniforge:     Bootstrap from the Miniforge installer instead of Miniconda.
        conda_exe:         Path to the conda executable used for every command.

    """

    root_prefix: Path
    miniconda_version: str = DEFAULT_MINICONDA_VERSION
    use_miniforge: bool = False
    conda_exe: Path

    class Config:
        allow_mutation = False
        extra = "forbid"

    @validator("miniconda_version", pre=True)
    def supported_version(cls, v):
        v = str(v)
        if v not in SUPPORTED_MINICONDA_VERSIONS:
            raise ValueError(
                f"Unsupported Miniconda version {v!r}, expected one of "
                f"{', '.join(SUPPORTED_MINICONDA_VERSIONS)}."
            )
        return v


def default_home() -> Path:
    return Path.home() / ".conda-manager"


def default_deps_file(environ: Optional[Mapping[str, str]] = None) -> Path:
    environ = os.environ if environ is None else environ
    specified = environ.get(DEPS_VAR)
    if specified:
        return Path(os.path.expandvars(specified)).expanduser()
    return default_home() / DEPS_FILENAME


def default_root_prefix(miniconda_version: str = DEFAULT_MINICONDA_VERSION) -> Path:
    return default_home() / "conda" / miniconda_version / platform.machine().lower()


def default_conda_exe(root_prefix: Path, windows: Optional[bool] = None) -> Path:
    windows = is_windows() if windows is None else windows
    if windows:
        return Path(root_prefix) / "Scripts" / "conda.exe"
    return Path(root_prefix) / "bin" / "conda"


def build_config(
    deps_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CondaConfig:
    """Resolve the build constants and persist them.

    Values given through environment variables win over the previously
    written file, which wins over the defaults. Changing the Miniconda version
    of an existing root environment is refused rather than migrated.

    Args:
        deps_file: Where to write the constants. Defaults to $CONDA_MANAGER_DEPS
                   or ~/.conda-manager/deps.yml.
        environ:   Mapping to read the CONDA_MANAGER_* variables from. Defaults to
                   os.environ.

    Returns:
        The resolved configuration.

    Raises:
        ConfigurationError: On a version change for an existing root environment
                            or if CONDA_MANAGER_CONDA_EXE does not point to a file.

    """
    environ = os.environ if environ is None else environ
    deps_file = default_deps_file(environ) if deps_file is None else Path(deps_file)

    previous = CondaConfig.parse_yaml(deps_file) if deps_file.exists() else None
    previous_version = (
        previous.miniconda_version
        if previous is not None
        else DEFAULT_MINICONDA_VERSION
    )

    miniconda_version = environ.get(VERSION_VAR) or previous_version

    if environ.get(HOME_VAR):
        root_prefix = Path(os.path.expandvars(environ[HOME_VAR])).expanduser()
    else:
        root_prefix = (
            previous.root_prefix
            if previous is not None
            else default_root_prefix(previous_version)
        )
        if root_prefix.is_dir() and miniconda_version != previous_version:
            raise ConfigurationError(
                f"The Miniconda version changed from {previous_version} to {miniconda_version} "
                f"but a root environment already exists at {root_prefix}.\n"
                f"Changing the Miniconda version of an existing root environment is not supported. "
                f"Unset {VERSION_VAR} to keep version {previous_version}, or delete the root "
                f"environment and build again. Deleting it removes every package installed in it."
            )
    root_prefix = root_prefix.absolute()

    if MINIFORGE_VAR in environ:
        use_miniforge = is_truthy(environ[MINIFORGE_VAR])
    else:
        use_miniforge = previous.use_miniforge if previous is not None else False

    if environ.get(CONDA_EXE_VAR):
        conda_exe = Path(environ[CONDA_EXE_VAR]).expanduser().absolute()
        if not conda_exe.is_file():
            raise ConfigurationError(
                f"{CONDA_EXE_VAR} is set to {conda_exe}, which is not an existing file."
            )
    elif previous is not None and previous.root_prefix == root_prefix:
        conda_exe = previous.conda_exe
    else:
        conda_exe = default_conda_exe(root_prefix)

    try:
        config = CondaConfig(
            root_prefix=root_prefix,
            miniconda_version=miniconda_version,
            use_miniforge=use_miniforge,
            conda_exe=conda_exe,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid conda-manager configuration\n{str(e)}")

    root_prefix.mkdir(parents=True, exist_ok=True)

    if config != previous:
        deps_file.parent.mkdir(parents=True, exist_ok=True)
        config.yaml(deps_file)
        logger.info(f"wrote conda-manager configuration to {deps_file}")

    return config


def load_config(deps_file: Optional[Union[str, Path]] = None) -> CondaConfig:
    """Read the constants written by :func:`build_config`.

    Raises:
        ConfigurationError: If the file is missing or invalid.

    """
    deps_file = default_deps_file() if deps_file is None else Path(deps_file)
    if not deps_file.exists():
        raise ConfigurationError(
            f"conda-manager is not configured: {deps_file} does not exist.\n"
            f"Run 'conda-manager build' before using it."
        )
    return CondaConfig.parse_yaml(deps_file)
