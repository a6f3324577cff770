# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause

import platform
from typing import Iterable, List, Optional, Union

_TRUTHY = ("1", "true", "yes", "on")


def is_windows():
    return platform.system() == "Windows"


def is_truthy(value: Optional[str]) -> bool:
    """Interpret an environment variable value as a boolean flag."""
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def as_list(items: Union[str, Iterable[str], None]) -> List[str]:
    """Accept a single package (or channel) name or an iterable of them."""
    if items is None:
        return []
    if isinstance(items, str):
        return [items]
    return [str(item) for item in items]
