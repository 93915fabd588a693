# SPDX-License-Identifier: FSFAP
# Copyright (C) 2025 The Pixora Tools Developers
#
# Copying and distribution of this file, with or without modification,
# are permitted in any medium without royalty provided the copyright
# notice and this notice are preserved.  This file is offered as-is,
# without any warranty.

import os
from setuptools import setup, find_packages

# This directory
dir_setup = os.path.dirname(os.path.realpath(__file__))

with open(os.path.join(dir_setup, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

with open(os.path.join(dir_setup, "pixora", "version.py")) as f:
    # Defines __version__
    exec(f.read())

install_requires = [
    "arrow>=1.1.1",
    "exif>=1.2.2",
    "numpy>=1.17.0",
    "Pillow>=10.1.0",
    "pymupdf>=1.24.3",
    "segno",
    'tomli>=2.0.1 ; python_version<"3.11"',  # until we drop 3.10
    "tomlkit>=0.11.4",
    "tqdm",
]

# Non-Python deps
#   - a bold TrueType font such as DejaVu Sans is used if installed,
#     otherwise Pillow's built-in font


setup(
    name="pixora",
    version=__version__,  # noqa: F821
    description="Pixora image and QR code tools",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="The Pixora Tools Developers",
    license="AGPLv3+",
    python_requires=">=3.9",
    packages=find_packages(),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: GNU Affero General Public License v3 or later (AGPLv3+)",
        "Development Status :: 3 - Alpha",
        "Operating System :: OS Independent",
        "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    ],
    entry_points={
        "console_scripts": [
            "pixora=pixora.__main__:main",
        ],
    },
    include_package_data=True,
    package_data={"pixora": ["defaults.toml"]},
    install_requires=install_requires,
    extras_require={
        "test": ["pytest"],
    },
)
