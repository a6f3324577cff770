# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause


class CondaManagerError(Exception):
    pass


class ConfigurationError(CondaManagerError):
    pass


class InvalidEnvironmentError(ConfigurationError, ValueError):
    pass


class BootstrapError(CondaManagerError):
    pass


class UnsupportedPlatformError(BootstrapError):
    pass


class CondaCommandError(CondaManagerError):
    def __init__(self, cmd, returncode, stderr=None, output=None):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        self.output = output or ""

        print_cmd = " ".join(str(c) for c in self.cmd)
        msg = f"Failed to run:\n  {print_cmd}\nexit status {returncode}"
        if self.stderr:
            msg += f"\n{self.stderr}"
        super().__init__(msg)


class CondaOutputError(CondaManagerError):
    pass


class PackageNotFoundError(CondaManagerError):
    pass


class PipInteropError(CondaManagerError):
    pass
