#!/usr/bin/python3
# Setup file for packfile_reader
# Copyright (C) 2026 packfile_reader contributors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

setup(
    name="packfile-reader",
    version="0.1.0",
    description="Read objects out of git packfiles without their index",
    license="Apache-2.0 OR GPL-2.0-or-later",
    packages=["packfile_reader"],
    package_data={"": ["py.typed"]},
    python_requires=">=3.10",
    extras_require={
        "dev": ["ruff", "mypy"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Version Control :: Git",
    ],
)
