# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause

from pathlib import Path

from setuptools import find_packages, setup

with open("README.md", "r") as fh:
    long_description = fh.read()

version = {}
exec((Path("src") / "conda_manager" / "_version.py").read_text(), version)

requirements = [
    "packaging",
    "pydantic",
    "requests",
    "ruamel.yaml",
]
tests_requirements = [
    "pytest",
    "pytest-mock",
]

setup(
    name="conda-manager",
    version=version["__version__"],
    description="Bootstrap a private conda installation and manage its environments, packages and channels",
    license="BSD",
    packages=find_packages("src"),
    package_dir={"": "src"},
    entry_points={"console_scripts": ["conda-manager=conda_manager.cli.main:main"]},
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "tests": tests_requirements,
    },
    keywords="conda",
    classifiers=[
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    long_description=long_description,
    long_description_content_type="text/markdown",
)
