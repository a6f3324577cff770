# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause

try:
    from ._version import __version__
except ImportError:  # pragma: no cover
    __version__ = "unknown"

# flake8: noqa
from .condarc import add_channel, channels, pip_interop, rm_channel
from .config import CondaConfig, build_config, load_config
from .environment import (
    ROOT,
    Environment,
    bin_dir,
    conda_rc,
    lib_dir,
    prefix,
    python_dir,
    resolve_environment,
    script_dir,
)
from .exceptions import CondaManagerError
from .installer import ensure_installed
from .models import PackageRecord, ParsedVersion
from .packages import (
    add,
    clean,
    exists,
    export_list,
    import_list,
    installed_names,
    list_installed,
    list_packages,
    pip,
    remove,
    search,
    update,
    version,
)

list = list_packages
