# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .environment import Environment
from .exceptions import CondaCommandError
from .utils import is_truthy

# Variables with these prefixes configure a conda or python other than ours.
SANITIZED_PREFIXES = ("CONDA", "PYTHON")

logger = logging.getLogger(__name__)


def conda_environ(
    environment: Environment, base: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """Build the process environment for a conda (or pip) subprocess.

    Every CONDA* and PYTHON* variable of the parent process is dropped, then
    CONDARC points at the environment's private config file and CONDA_PREFIX
    at its prefix. On Windows the environment's binaries are put first on PATH.
    """
    parent_process_env = dict(os.environ if base is None else base)

    env = {
        k: v for k, v in parent_process_env.items() if not k.startswith(SANITIZED_PREFIXES)
    }
    env["CONDARC"] = str(environment.condarc)
    env["CONDA_PREFIX"] = str(environment.prefix)

    if environment.windows:
        env["PATH"] = f"{environment.bin_dir};{env.get('PATH', '')}"

    return env


def quiet_flags(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """Progress bars are noise in CI logs."""
    environ = os.environ if environ is None else environ
    return ["-q"] if is_truthy(environ.get("CI")) else []


def call_conda(
    args: Sequence[Union[str, Path]],
    environment: Environment,
    capture: bool = False,
    executable: Optional[Union[str, Path]] = None,
) -> subprocess.CompletedProcess:
    """Call conda CLI with subprocess.run

    Args:
        args:        Arguments following the executable.
        environment: The environment the command acts on; selects CONDARC and CONDA_PREFIX.
        capture:     Capture stdout instead of letting it stream to the console.
        executable:  Run this program instead of conda, e.g. the environment's pip.

    Raises:
        CondaCommandError: If the process exits with a non-zero status.

    """
    cmd = [str(executable or environment.conda_exe)] + [str(a) for a in args]
    env = conda_environ(environment)

    if capture:
        stdout = subprocess.PIPE
    else:
        stdout = None

    logger.info(f'running `{" ".join(cmd)}` in {environment.label} environment')

    proc = subprocess.run(
        cmd, env=env, stdout=stdout, stderr=subprocess.PIPE, encoding="utf-8"
    )

    if proc.returncode != 0:
        raise CondaCommandError(
            cmd, proc.returncode, stderr=proc.stderr, output=proc.stdout
        )

    return proc
