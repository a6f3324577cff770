# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, List, Optional

import pytest

from conda_manager.config import CondaConfig, default_conda_exe
from conda_manager.environment import ROOT, resolve_environment


class FakeConda:
    """A stand-in for subprocess.run that records every command.

    Responses are registered for a leading sequence of arguments (the
    executable excluded); the most recently registered match wins. Commands
    without a response succeed with empty output. A callback receives the
    arguments and may return the output in place of a fixed one.
    `create -p <prefix>` creates the prefix directory like conda would.
    """

    def __init__(self):
        self.calls: List[SimpleNamespace] = []
        self._responses: list = []

    def respond(
        self,
        *args: str,
        stdout: Any = "",
        returncode: int = 0,
        stderr: str = "",
        callback: Optional[Callable[[List[str]], Any]] = None,
    ) -> None:
        if not isinstance(stdout, str):
            stdout = json.dumps(stdout)
        self._responses.append((args, stdout, returncode, stderr, callback))

    def __call__(self, cmd, **kwargs):
        args = [] if isinstance(cmd, str) else list(cmd[1:])
        capture = kwargs.get("stdout") is not None
        self.calls.append(
            SimpleNamespace(cmd=cmd, args=args, env=kwargs.get("env"), capture=capture)
        )

        if args[:1] == ["create"] and "-p" in args:
            Path(args[args.index("-p") + 1]).mkdir(parents=True, exist_ok=True)

        for prefix, stdout, returncode, stderr, callback in reversed(self._responses):
            if tuple(args[: len(prefix)]) == prefix:
                if callback is not None:
                    result = callback(args)
                    if result is not None:
                        stdout = result if isinstance(result, str) else json.dumps(result)
                return subprocess.CompletedProcess(
                    cmd, returncode, stdout if capture else None, stderr
                )

        return subprocess.CompletedProcess(cmd, 0, "" if capture else None, "")

    @property
    def commands(self) -> List[List[str]]:
        return [c.args for c in self.calls]


@pytest.fixture(autouse=True)
def no_ci(monkeypatch):
    """Commands are asserted without the -q flag added on CI."""
    monkeypatch.delenv("CI", raising=False)


@pytest.fixture
def conda_config(tmp_path) -> CondaConfig:
    """A configuration whose conda executable already exists."""
    root = tmp_path / "conda-root"
    conda_exe = default_conda_exe(root)
    conda_exe.parent.mkdir(parents=True)
    conda_exe.touch()
    return CondaConfig(root_prefix=root, conda_exe=conda_exe)


@pytest.fixture
def deps_file(tmp_path, conda_config) -> Path:
    path = tmp_path / "deps.yml"
    conda_config.yaml(path)
    return path


@pytest.fixture
def root_env(conda_config):
    return resolve_environment(ROOT, conda_config)


@pytest.fixture
def fake_conda(mocker) -> FakeConda:
    fake = FakeConda()
    mocker.patch("conda_manager.conda.subprocess.run", side_effect=fake)
    return fake
