# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Pixora is a set of image and QR-code tools.

Pixora decodes, transforms, composites and re-encodes bitmaps, and
generates styled QR codes, all in-process on in-memory images.
"""

__copyright__ = "Copyright (C) 2025 The Pixora Tools Developers"
__credits__ = "The Pixora Tools Developers"
__license__ = "AGPL-3.0-or-later"

from .version import __version__

import sys

if sys.version_info[0] == 2:
    raise RuntimeError("Pixora requires Python 3; it will not work with Python 2")

# Image types we can decode, keyed by mime type
SupportedMimeTypes = ("image/jpeg", "image/png", "image/webp", "image/gif")

from .config import get_config, load_config

__all__ = [
    "__version__",
    "get_config",
    "load_config",
]
