# -*- coding: utf-8 -*-
# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Typed views of conda's output."""
from __future__ import annotations

from functools import total_ordering
from typing import Any, Dict, List, Optional, Union

from packaging.version import InvalidVersion, Version

try:  # pragma: no cover
    from pydantic.v1 import BaseModel  # pragma: no cover
except ImportError:  # pragma: no cover
    from pydantic import BaseModel  # type: ignore; #pragma: no cover

from .exceptions import CondaOutputError


@total_ordering
class ParsedVersion:
    """A package version string and, when it parses, its Version.

    Unparseable versions compare greater than every parseable one, so a
    package whose version cannot be read is never taken for an outdated one.
    Two unparseable versions compare by their raw strings.
    """

    __slots__ = ("raw", "version")

    def __init__(self, raw: str, version: Optional[Version] = None):
        self.raw = raw
        self.version = version

    @classmethod
    def parse(cls, raw: str) -> ParsedVersion:
        try:
            return cls(raw, Version(raw))
        except InvalidVersion:
            return cls(raw, None)

    @property
    def is_unparseable(self) -> bool:
        return self.version is None

    def _key(self):
        if self.version is None:
            return (1, self.raw)
        return (0, self.version)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, str):
            other = ParsedVersion.parse(other)
        elif isinstance(other, Version):
            other = ParsedVersion(str(other), other)
        if not isinstance(other, ParsedVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, str):
            other = ParsedVersion.parse(other)
        elif isinstance(other, Version):
            other = ParsedVersion(str(other), other)
        if not isinstance(other, ParsedVersion):
            return NotImplemented
        a, b = self._key(), other._key()
        if a[0] != b[0]:
            return a[0] < b[0]
        return a[1] < b[1]

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        if self.version is None:
            return f"ParsedVersion({self.raw!r}, unparseable)"
        return f"ParsedVersion({self.raw!r})"


class PackageRecord(BaseModel):
    """One line of the tabular `conda list` output."""

    name: str
    version: ParsedVersion
    build: Optional[str] = None
    channel: Optional[str] = None
    line: str

    class Config:
        allow_mutation = False
        arbitrary_types_allowed = True


class ListedPackage(BaseModel):
    """An entry of `conda list --json`."""

    name: str
    version: str
    build_string: Optional[str] = None
    build_number: Optional[int] = None
    channel: Optional[str] = None
    platform: Optional[str] = None
    base_url: Optional[str] = None
    dist_name: Optional[str] = None

    class Config:
        extra = "ignore"

    @classmethod
    def from_json(cls, entry: Union[str, Dict[str, Any]]) -> ListedPackage:
        # Old conda releases list bare "<name>-<version>-<build>" strings.
        if isinstance(entry, str):
            parts = entry.rsplit("-", 2)
            if len(parts) != 3:
                raise CondaOutputError(
                    f"Unexpected conda list entry {entry!r}, expected <name>-<version>-<build>"
                )
            name, version, build = parts
            return cls(name=name, version=version, build_string=build, dist_name=entry)
        return cls.parse_obj(entry)

    @property
    def parsed_version(self) -> ParsedVersion:
        return ParsedVersion.parse(self.version)


class SearchHit(BaseModel):
    """A package build found by `conda search --json`."""

    name: Optional[str] = None
    version: Optional[str] = None
    build: Optional[str] = None
    build_number: Optional[int] = None
    channel: Optional[str] = None
    subdir: Optional[str] = None
    url: Optional[str] = None
    fn: Optional[str] = None

    class Config:
        extra = "ignore"


class ConfigGetResult(BaseModel):
    """The output of `conda config --get <key> --json`."""

    get: Dict[str, Any] = {}
    rc_path: Optional[str] = None
    warnings: List[str] = []

    class Config:
        extra = "ignore"
