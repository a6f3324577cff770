# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Sequence, Union

from .conda import call_conda
from .environment import Environment
from .exceptions import CondaOutputError
from .installer import ensure_installed


def run(
    args: Sequence[Union[str, Path]], environment: Environment
) -> subprocess.CompletedProcess:
    """Run a conda subcommand, streaming its output to the console."""
    ensure_installed(environment)
    return call_conda(args, environment)


def read_output(args: Sequence[Union[str, Path]], environment: Environment) -> str:
    """Run a conda subcommand and return its standard output."""
    ensure_installed(environment)
    return call_conda(args, environment, capture=True).stdout


def parse_json(output: str, args: Sequence[Union[str, Path]]) -> Any:
    try:
        return json.loads(output)
    except json.decoder.JSONDecodeError as e:
        print_cmd = " ".join(str(a) for a in args)
        raise CondaOutputError(
            f"Failed to parse the JSON output of 'conda {print_cmd}'\n{e}"
        )


def run_json(args: Sequence[Union[str, Path]], environment: Environment) -> Any:
    """Run a conda subcommand with --json and parse its output."""
    args = [*args, "--json"]
    return parse_json(read_output(args, environment), args)
