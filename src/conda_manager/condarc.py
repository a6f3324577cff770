# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Settings kept in an environment's private condarc file.

Every call passes ``--file <prefix>/condarc-conda-manager.yml`` so that one
environment's channels never leak into another environment or into the
user's own ~/.condarc.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from .config import CondaConfig
from .environment import ROOT, Environment, EnvironmentRef, resolve_environment
from .models import ConfigGetResult
from .runner import run, run_json

logger = logging.getLogger(__name__)


def _get(key: str, environment: Environment) -> ConfigGetResult:
    output = run_json(
        ["config", "--get", key, "--file", str(environment.condarc)], environment
    )
    return ConfigGetResult.parse_obj(output)


def channels(
    env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> List[str]:
    """Get the ordered list of channels of an environment."""
    environment = resolve_environment(env, config)
    result = _get("channels", environment)
    return [str(c) for c in result.get.get("channels", None) or []]


def add_channel(
    channel: str, env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> None:
    """Put channel at the top of an environment's channel list.

    Adding a channel that is already listed moves it to the top.
    """
    environment = resolve_environment(env, config)
    run(
        [
            "config",
            *("--add", "channels", channel),
            *("--file", str(environment.condarc)),
            "--force",
        ],
        environment,
    )


def rm_channel(
    channel: str, env: EnvironmentRef = ROOT, config: Optional[CondaConfig] = None
) -> None:
    """Remove a channel from an environment's channel list."""
    environment = resolve_environment(env, config)
    run(
        [
            "config",
            *("--remove", "channels", channel),
            *("--file", str(environment.condarc)),
            "--force",
        ],
        environment,
    )


def pip_interop(
    enabled: Optional[bool] = None,
    env: EnvironmentRef = ROOT,
    config: Optional[CondaConfig] = None,
) -> bool:
    """Enable or disable pip interoperability, and report the current setting.

    Args:
        enabled: True or False to change the setting. None only reads it.
        env:     The environment.
        config:  The conda-manager configuration.

    Returns:
        Whether conda takes pip-installed packages into account in the environment.

    """
    environment = resolve_environment(env, config)

    if enabled is not None:
        value = "true" if enabled else "false"
        logger.info(f"setting pip_interop_enabled to {value} in {environment.label}")
        run(
            [
                "config",
                *("--set", "pip_interop_enabled", value),
                *("--file", str(environment.condarc)),
                "--force",
            ],
            environment,
        )

    result = _get("pip_interop_enabled", environment)
    return bool(result.get.get("pip_interop_enabled", False))
